"""Generated credentials and bcrypt hashing."""
from app.security.passwords import generate_password, get_password_hash, validate_password, verify_password


class TestGeneratePassword:
    def test_default_length_from_settings(self):
        assert len(generate_password()) == 12

    def test_minimum_length_enforced(self):
        assert len(generate_password(4)) == 8

    def test_generated_passwords_pass_complexity(self):
        for _ in range(20):
            assert validate_password(generate_password()) == []


class TestValidatePassword:
    def test_reports_each_missing_class(self):
        errors = validate_password("short")

        assert "Password must be at least 8 characters long" in errors
        assert "Password must contain at least 1 uppercase letter" in errors
        assert "Password must contain at least 1 digit" in errors


class TestHashing:
    def test_hash_round_trip(self):
        hashed = get_password_hash("Password123")

        assert hashed != "Password123"
        assert verify_password("Password123", hashed) is True
        assert verify_password("password123", hashed) is False
