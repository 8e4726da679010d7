"""
Pricing engine for inspection services.

An account's pricing JSON is parsed into an immutable PricingConfig for each
request. calculate_pricing turns (services, property facts) into an itemized
invoice:

- main service (full/pre): tiered by square footage
- house age surcharge (full only): tiered by age
- additional services: flat catalog price
- foundation surcharge: flat per foundation type
- tax: subtotal x rate, rounded half-up to cents

All money is Decimal; output is deterministic for identical inputs.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from app.exceptions import InvalidParameterError, RuntimeFailureError
from app.models.inspection import FOUNDATION_TYPES, MAIN_SERVICES
from app.services.validators import is_integer, validate_foundation, validate_sqft, validate_year_built

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
TAX_PERCENT_QUANT = Decimal("0.001")
ZERO = Decimal("0")

# Used for the main-service line when the catalog does not list it
DEFAULT_MAIN_SERVICE_NAMES = {
    "full": "Full Inspection",
    "pre": "Pre-Inspection",
}


def _to_decimal(value: Any, what: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise RuntimeFailureError(f"Invalid pricing configuration: {what}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise RuntimeFailureError(f"Invalid pricing configuration: {what}")
    if not result.is_finite():
        raise RuntimeFailureError(f"Invalid pricing configuration: {what}")
    return result


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Tier:
    floor: Decimal
    price: Decimal


@dataclass(frozen=True)
class TierTable:
    enabled: bool = False
    tiers: tuple[Tier, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, what: str) -> "TierTable":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise RuntimeFailureError(f"Invalid pricing configuration: {what}")
        # "ranges" is the older name for the tier list
        raw_tiers = data.get("tiers", data.get("ranges", []))
        if not isinstance(raw_tiers, list):
            raise RuntimeFailureError(f"Invalid pricing configuration: {what}")
        tiers = []
        for raw in raw_tiers:
            if not isinstance(raw, dict) or "floor" not in raw or "price" not in raw:
                raise RuntimeFailureError(f"Invalid pricing configuration: {what}")
            tiers.append(Tier(
                floor=_to_decimal(raw["floor"], what),
                price=_to_decimal(raw["price"], what),
            ))
        tiers.sort(key=lambda t: t.floor)
        return cls(enabled=bool(data.get("enabled", False)), tiers=tuple(tiers))


@dataclass(frozen=True)
class ServiceOffering:
    short_name: str
    long_name: str
    price: Decimal


@dataclass(frozen=True)
class PricingConfig:
    """Immutable view of an account's pricing configuration."""

    services: tuple[ServiceOffering, ...] = ()
    sqft_pricing: TierTable = field(default_factory=TierTable)
    age_pricing: TierTable = field(default_factory=TierTable)
    foundation_pricing: tuple[tuple[str, Decimal], ...] = ()
    tax_rate: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: Any) -> "PricingConfig":
        """Parse Account.pricing; malformed configuration is a server-side failure."""
        if not isinstance(data, dict):
            raise RuntimeFailureError("Invalid pricing configuration")

        raw_services = data.get("services") or []
        if not isinstance(raw_services, list):
            raise RuntimeFailureError("Invalid pricing configuration: services")
        services = []
        for raw in raw_services:
            if not isinstance(raw, dict) or not raw.get("short_name"):
                raise RuntimeFailureError("Invalid pricing configuration: services")
            services.append(ServiceOffering(
                short_name=str(raw["short_name"]),
                long_name=str(raw.get("long_name") or raw["short_name"]),
                price=_to_decimal(raw.get("price", 0), "services"),
            ))

        raw_foundation = data.get("foundation_pricing") or {}
        if not isinstance(raw_foundation, dict):
            raise RuntimeFailureError("Invalid pricing configuration: foundation_pricing")
        foundation = tuple(
            (name, _to_decimal(raw_foundation.get(name, 0), "foundation_pricing"))
            for name in FOUNDATION_TYPES
        )

        tax_rate = _to_decimal(data.get("tax_rate", data.get("tax", 0)) or 0, "tax_rate")
        if tax_rate < 0:
            raise RuntimeFailureError("Invalid pricing configuration: tax_rate")

        return cls(
            services=tuple(services),
            sqft_pricing=TierTable.from_dict(data.get("sqft_pricing"), "sqft_pricing"),
            age_pricing=TierTable.from_dict(data.get("age_pricing"), "age_pricing"),
            foundation_pricing=foundation,
            tax_rate=tax_rate,
        )

    def find_service(self, short_name: str) -> Optional[ServiceOffering]:
        for offering in self.services:
            if offering.short_name == short_name:
                return offering
        return None

    def foundation_price(self, foundation: str) -> Decimal:
        return dict(self.foundation_pricing).get(foundation, ZERO)


@dataclass(frozen=True)
class LineItem:
    name: str
    price: Decimal


@dataclass(frozen=True)
class PricingResult:
    items: tuple[LineItem, ...]
    subtotal: Decimal
    tax: Decimal
    tax_percent: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        """JSON-safe representation (also the invoice snapshot format)."""
        return {
            "items": [{"name": item.name, "price": float(item.price)} for item in self.items],
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "tax_percent": float(self.tax_percent),
            "total": float(self.total),
        }


def calculate_tiered_price(tiers: Iterable, value) -> Decimal:
    """
    Price of the last tier (ascending by floor) whose floor is below value.

    Accepts Tier objects or {"floor", "price"} dicts. Returns 0 when no
    floor is below value.
    """
    normalized = []
    for tier in tiers:
        if isinstance(tier, Tier):
            normalized.append(tier)
        else:
            normalized.append(Tier(
                floor=_to_decimal(tier["floor"], "tiers"),
                price=_to_decimal(tier["price"], "tiers"),
            ))
    normalized.sort(key=lambda t: t.floor)

    target = Decimal(str(value))
    price = ZERO
    for tier in normalized:
        if target > tier.floor:
            price = tier.price
    return price


def validate_services(config: PricingConfig, services: Any) -> tuple[Optional[str], list[str]]:
    """
    Split a service list into (main service, additional services).

    Rejects an empty list, duplicates, both main services at once and any
    additional service missing from the account catalog.
    """
    if not isinstance(services, (list, tuple)) or not services:
        raise InvalidParameterError("Invalid services")
    if any(not isinstance(s, str) for s in services):
        raise InvalidParameterError("Invalid services")
    if len(set(services)) != len(services):
        raise InvalidParameterError("Duplicate services")

    mains = [s for s in services if s in MAIN_SERVICES]
    if len(mains) > 1:
        raise InvalidParameterError("Only one of full or pre inspection may be selected")

    additional = [s for s in services if s not in MAIN_SERVICES]
    for name in additional:
        if config.find_service(name) is None:
            raise InvalidParameterError(f"Invalid service name: {name}")

    return (mains[0] if mains else None), additional


def calculate_pricing(
    config: PricingConfig,
    services: list[str],
    sqft: int,
    year_built: Optional[int] = None,
    age: Optional[int] = None,
    foundation: Optional[str] = None,
    today: Optional[date] = None,
) -> PricingResult:
    """Itemize an inspection quote for the given services and property."""
    main_service, additional = validate_services(config, services)
    validate_sqft(sqft)

    if year_built is not None:
        validate_year_built(year_built, today)
        house_age = (today or date.today()).year - year_built
    elif age is not None:
        if not is_integer(age) or age < 0:
            raise InvalidParameterError("Invalid house age")
        house_age = age
    else:
        raise InvalidParameterError("Invalid house age")

    validate_foundation(foundation)

    items: list[LineItem] = []

    if main_service is not None:
        offering = config.find_service(main_service)
        long_name = offering.long_name if offering else DEFAULT_MAIN_SERVICE_NAMES[main_service]
        if config.sqft_pricing.enabled:
            items.append(LineItem(
                name=f"{long_name} ({sqft} sq ft)",
                price=calculate_tiered_price(config.sqft_pricing.tiers, sqft),
            ))
        elif offering is not None:
            items.append(LineItem(name=long_name, price=offering.price))

    if main_service == "full" and config.age_pricing.enabled:
        items.append(LineItem(
            name=f"House age: {house_age} years",
            price=calculate_tiered_price(config.age_pricing.tiers, house_age),
        ))

    for name in additional:
        offering = config.find_service(name)
        items.append(LineItem(name=offering.long_name, price=offering.price))

    foundation_price = config.foundation_price(foundation)
    if foundation_price != 0:
        items.append(LineItem(name=f"Foundation: {foundation}", price=foundation_price))

    subtotal = _money(sum((item.price for item in items), ZERO))
    if config.tax_rate != 0:
        tax = _money(subtotal * config.tax_rate)
        tax_percent = (config.tax_rate * 100).quantize(TAX_PERCENT_QUANT, rounding=ROUND_HALF_UP)
    else:
        tax = _money(ZERO)
        tax_percent = ZERO

    return PricingResult(
        items=tuple(items),
        subtotal=subtotal,
        tax=tax,
        tax_percent=tax_percent,
        total=subtotal + tax,
    )


def get_services(config: PricingConfig) -> list[dict]:
    """Public service list shown on the booking form."""
    return [{"short": s.short_name, "long": s.long_name} for s in config.services]
