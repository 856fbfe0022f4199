"""Regional pricing hints for new claims.

`get_zip_insight` maps the first three digits of a ZIP code to a regional cost
multiplier and applies it to a per-category base cost band. The tables are
static; unknown prefixes fall back to a neutral 1.0 multiplier.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional


# ============================================================
#  CLAIM CATEGORIES
# ============================================================

CLAIM_CATEGORIES: Dict[str, dict] = {
    "roofing": {
        "label": "Roofing",
        "description": "Hail, wind, aging, or storm damage to your roof",
        "subtypes": {
            "hail": "Hail Damage",
            "wind": "Wind Damage",
            "storm": "Storm Damage (General)",
            "roof-leak": "Roof Leak",
            "roof-aging": "Aging / Wear",
            "missing-shingles": "Missing Shingles / Tiles",
        },
    },
    "water": {
        "label": "Water Damage",
        "description": "Flooding, burst pipes, plumbing leaks, appliance overflow",
        "subtypes": {
            "flooding": "Flooding",
            "burst-pipe": "Burst / Frozen Pipes",
            "plumbing-leak": "Plumbing Leak",
            "appliance-overflow": "Appliance Overflow",
            "sewer-backup": "Sewer / Drain Backup",
            "water-intrusion": "Water Intrusion (Unknown)",
        },
    },
    "fire": {
        "label": "Fire / Smoke",
        "description": "Fire damage, smoke damage, electrical fires",
        "subtypes": {
            "house-fire": "Structure Fire",
            "kitchen-fire": "Kitchen Fire",
            "electrical-fire": "Electrical Fire",
            "smoke-only": "Smoke Damage Only",
            "wildfire": "Wildfire / Brush Fire",
            "lightning-strike": "Lightning Strike",
        },
    },
    "wind-storm": {
        "label": "Wind / Storm",
        "description": "Tornado, hurricane, monsoon, straight-line wind damage",
        "subtypes": {
            "tornado": "Tornado",
            "hurricane": "Hurricane / Tropical Storm",
            "monsoon": "Monsoon",
            "straight-line-wind": "Straight-Line Winds",
            "tree-fall": "Fallen Tree / Debris",
            "fence-damage": "Fence / Structure Damage",
        },
    },
    "biohazard": {
        "label": "Biohazard / Mold",
        "description": "Mold remediation, sewage, hazardous materials",
        "subtypes": {
            "mold": "Mold / Mildew",
            "sewage": "Sewage Contamination",
            "asbestos": "Asbestos Exposure",
            "lead": "Lead Paint",
            "chemical-spill": "Chemical Spill",
            "biohazard-other": "Other Biohazard",
        },
    },
    "theft-vandalism": {
        "label": "Theft / Vandalism",
        "description": "Break-in, property theft, graffiti, intentional damage",
        "subtypes": {
            "burglary": "Burglary / Break-in",
            "vandalism": "Vandalism / Graffiti",
            "vehicle-damage": "Vehicle Into Structure",
            "theft": "Property Theft",
        },
    },
    "other": {
        "label": "Other / General",
        "description": "Electrical, foundation, HVAC, or uncategorized damage",
        "subtypes": {
            "electrical": "Electrical Damage",
            "foundation": "Foundation / Structural",
            "hvac": "HVAC System Damage",
            "siding": "Siding Damage",
            "other": "Other / Not Listed",
        },
    },
}


# ============================================================
#  REGIONAL TABLES
# ============================================================

# 3-digit ZIP prefix -> (region label, cost multiplier)
REGION_MULTIPLIERS: Dict[str, tuple] = {
    # Arizona
    "850": ("Phoenix Metro, AZ", 0.95),
    "851": ("Phoenix Metro, AZ", 0.95),
    "852": ("Mesa / Tempe, AZ", 0.93),
    "853": ("Chandler / Gilbert, AZ", 0.94),
    "855": ("Globe / Eastern AZ", 0.88),
    "856": ("Tucson, AZ", 0.89),
    "857": ("Tucson, AZ", 0.89),
    "859": ("Show Low / White Mountains, AZ", 0.85),
    "860": ("Flagstaff / Northern AZ", 0.92),
    "863": ("Prescott, AZ", 0.90),
    "864": ("Kingman, AZ", 0.86),
    "865": ("Gallup / NE AZ", 0.84),
    # California
    "900": ("Los Angeles, CA", 1.25),
    "902": ("Inglewood / LA, CA", 1.22),
    "910": ("Pasadena, CA", 1.20),
    "920": ("San Diego, CA", 1.15),
    "941": ("San Francisco, CA", 1.40),
    "950": ("San Jose, CA", 1.35),
    # Texas
    "750": ("Dallas, TX", 0.92),
    "770": ("Houston, TX", 0.93),
    "782": ("San Antonio, TX", 0.88),
    "787": ("Austin, TX", 0.97),
    # Florida
    "330": ("Miami, FL", 1.08),
    "327": ("Orlando, FL", 0.95),
    "336": ("Tampa, FL", 0.96),
    "324": ("Jacksonville, FL", 0.92),
    # Northeast / Midwest
    "100": ("New York, NY", 1.45),
    "021": ("Boston, MA", 1.30),
    "191": ("Philadelphia, PA", 1.10),
    "606": ("Chicago, IL", 1.12),
    "481": ("Detroit, MI", 0.98),
    "432": ("Columbus, OH", 0.92),
    # West
    "981": ("Seattle, WA", 1.18),
    "972": ("Portland, OR", 1.10),
    "802": ("Denver, CO", 1.02),
    "841": ("Salt Lake City, UT", 0.95),
    "891": ("Las Vegas, NV", 1.00),
}

DEFAULT_REGION = ("Your Area", 1.0)

# category -> (low, high, trade)
BASE_COSTS: Dict[str, tuple] = {
    "roofing": (5000, 25000, "Roofing"),
    "water": (2500, 15000, "Water Restoration"),
    "fire": (10000, 75000, "Fire Restoration"),
    "wind-storm": (3000, 30000, "General Contracting"),
    "biohazard": (5000, 35000, "Hazmat / Remediation"),
    "theft-vandalism": (1000, 10000, "General Contracting"),
    "other": (2000, 20000, "General Contracting"),
}

CATEGORY_NOTES: Dict[str, List[str]] = {
    "roofing": [
        "Insurance typically covers sudden storm damage, not gradual wear",
        "Get at least 3 estimates before filing a claim",
        "Document all damage with photos before any temporary repairs",
    ],
    "water": [
        "Stop the source of water immediately if possible",
        "Water damage worsens rapidly — mitigation within 24-48 hours is critical",
        "Check if your policy covers the specific cause (sudden vs. gradual)",
    ],
    "fire": [
        "Do NOT enter the structure until cleared by the fire department",
        "Contact your insurance carrier within 24 hours",
        "Document everything with photos and video before cleanup begins",
        "Keep all receipts for temporary living expenses (ALE coverage)",
    ],
    "wind-storm": [
        "Cover exposed areas with tarps to prevent secondary damage",
        "Check for hidden damage to soffits, fascia, and gutters",
        "Wind damage claims often include multiple structures and landscaping",
    ],
    "biohazard": [
        "Professional remediation is almost always required — do NOT DIY",
        "Mold remediation typically requires containment and air filtration",
        "Some policies exclude mold — check your coverage first",
    ],
    "theft-vandalism": [
        "File a police report immediately — required for most claims",
        "Create a detailed inventory of stolen or damaged items",
        "Check if your policy includes replacement cost vs. actual cash value",
    ],
    "other": [
        "Document the current condition with photos and video",
        "Keep all receipts for emergency repairs",
    ],
}


@dataclass
class ZipInsight:
    zip_code: str
    region: str
    multiplier: float
    category: str
    subtype: Optional[str]
    low: int
    high: int
    cost_range: str
    trade_match: str
    avg_response_time: str
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _round_to_hundred(amount: float) -> int:
    """Round to the nearest $100, halves away from zero."""
    hundreds = (Decimal(str(amount)) / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(hundreds) * 100


def format_currency(amount: float) -> str:
    return f"${amount:,.0f}"


def lookup_region(zip_code: str) -> tuple:
    prefix = (zip_code or "").strip()[:3]
    return REGION_MULTIPLIERS.get(prefix, DEFAULT_REGION)


def get_zip_insight(zip_code: Optional[str], category: Optional[str], subtype: Optional[str] = None) -> Optional[ZipInsight]:
    """Regional cost band and response-time hints for a ZIP/category pair.

    Returns None when the ZIP is missing or shorter than five characters.
    """
    zip_code = (zip_code or "").strip()
    if len(zip_code) < 5:
        return None

    region, multiplier = lookup_region(zip_code)
    key = category if category in BASE_COSTS else "other"
    base_low, base_high, trade = BASE_COSTS[key]

    low = _round_to_hundred(base_low * multiplier)
    high = _round_to_hundred(base_high * multiplier)

    return ZipInsight(
        zip_code=zip_code,
        region=region,
        multiplier=multiplier,
        category=key,
        subtype=subtype or None,
        low=low,
        high=high,
        cost_range=f"{format_currency(low)} – {format_currency(high)}",
        trade_match=trade,
        avg_response_time="1–3 business days" if multiplier > 1.1 else "Same day – 2 days",
        notes=list(CATEGORY_NOTES[key]),
    )
