"""
Account pricing test factory.

Generates the JSON pricing configuration stored on Account.pricing.
"""

import factory


class PricingConfigFactory(factory.Factory):
    """
    Factory for account pricing configuration dicts.

    Usage:
        pricing = PricingConfigFactory()
        pricing = PricingConfigFactory(tax_rate=0)
    """

    class Meta:
        model = dict

    services = factory.LazyFunction(lambda: [
        {"short_name": "full", "long_name": "Full Home Inspection", "price": 0},
        {"short_name": "pre", "long_name": "Pre-Listing Inspection", "price": 250},
        {"short_name": "radon", "long_name": "Radon Testing", "price": 125},
        {"short_name": "termite", "long_name": "Termite Inspection", "price": 75},
    ])
    sqft_pricing = factory.LazyFunction(lambda: {
        "enabled": True,
        "tiers": [
            {"floor": 0, "price": 300},
            {"floor": 2000, "price": 400},
            {"floor": 3000, "price": 500},
        ],
    })
    age_pricing = factory.LazyFunction(lambda: {
        "enabled": True,
        "tiers": [
            {"floor": 0, "price": 0},
            {"floor": 50, "price": 50},
        ],
    })
    foundation_pricing = factory.LazyFunction(lambda: {
        "basement": 0,
        "slab": 0,
        "crawlspace": 25,
    })
    tax_rate = 0.07


class FlatPricingConfigFactory(PricingConfigFactory):
    """Catalog prices only: no tiers, no tax."""

    sqft_pricing = factory.LazyFunction(lambda: {"enabled": False, "tiers": []})
    age_pricing = factory.LazyFunction(lambda: {"enabled": False, "tiers": []})
    tax_rate = 0
