# proposal_builder/seed.py
"""Sample proposal shown on a fresh start."""

from proposal_builder.models import Proposal
from proposal_builder.sanitize import normalize_proposal

SAMPLE_SCOPE = {
    "trade": "Storefront",
    "title": "Main Entry Storefront",
    "system": "YKK 60TU (basis) / Kawneer 451T (alt)",
    "finish": "Anodized Dark Bronze",
    "inclusions": ["Shop drawings & submittals", "Perimeter seals within our scope"],
    "exclusions": ["Electrical for access control", "Painting/patching by others"],
    "pricingItems": [
        {"id": "p1", "description": '1" IGU Low-E glazing', "unit": "SF", "qty": 100, "unitRate": 25},
    ],
    "services": [
        {"id": "s1", "description": "Field measure & layout", "unit": "LS", "qty": 1, "unitRate": 350},
    ],
    "generalConditions": [
        {"id": "g1", "description": "Safety & PPE", "unit": "LS", "qty": 1, "unitRate": 150},
    ],
    "alternates": [
        {"id": "a1", "label": "Alt 1", "description": "Upgrade to SGP interlayer",
         "addOrDeduct": "ADD", "amount": 900},
    ],
}


def sample_proposal() -> Proposal:
    return normalize_proposal({
        "name": "Maple Ridge Office Renovation",
        "company": {
            "name": "Del Ray Glass",
            "phone": "(703) 555-0123",
            "email": "estimating@delrayglass.com",
        },
        "project": {
            "name": "Maple Ridge Office",
            "number": "MR-042",
            "location": "Arlington, VA",
            "bidDate": "2025-08-20",
        },
        "scopes": [SAMPLE_SCOPE],
    })
