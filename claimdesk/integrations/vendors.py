"""Roofing vendor catalog: built-in seed data plus an optional remote sync.

`VENDOR_CATALOG_URL` points at a catalog service exposing
`GET <base>/vendors/<slug>/products`. Without it, or when the request fails,
the built-in seed products are used.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import List, Optional

import requests
from flask import current_app

from ..extensions import db
from ..models import Vendor, VendorLocation, VendorProduct
from ..pricing import lookup_region

logger = logging.getLogger(__name__)

VENDOR_CATEGORIES = ["Shingle", "Tile", "Metal", "Flat/TPO", "Coatings", "Accessories"]

VENDOR_SEED: List[dict] = [
    {
        "slug": "gaf",
        "name": "GAF",
        "website": "https://www.gaf.com",
        "phone": "1-877-423-7663",
        "email": "gafpro@gaf.com",
        "categories": ["Shingle", "Flat/TPO", "Accessories"],
        "summary": "North America's largest roofing manufacturer with full residential & commercial systems.",
        "locations": [
            {"city": "Phoenix", "state": "AZ", "address": "3811 E University Dr, Phoenix, AZ 85034",
             "phone": "(602) 273-4343", "hours": "Mon-Fri: 6:00 AM - 5:00 PM, Sat: 7:00 AM - 12:00 PM"},
            {"city": "Tucson", "state": "AZ", "address": "4550 S Palo Verde Rd, Tucson, AZ 85714",
             "phone": "(520) 889-6603", "hours": "Mon-Fri: 6:00 AM - 5:00 PM, Sat: 7:00 AM - 12:00 PM"},
            {"city": "Flagstaff", "state": "AZ", "address": "2626 E Route 66, Flagstaff, AZ 86004",
             "phone": "(928) 526-2131", "hours": "Mon-Fri: 7:00 AM - 5:00 PM, Sat: 8:00 AM - 12:00 PM"},
        ],
        "products": [
            {"id": "gaf-timberline-hdz", "name": "Timberline HDZ", "type": "Architectural Shingle",
             "description": "LayerLock technology with StrikeZone nailing area.", "warranty": "Lifetime Limited"},
            {"id": "gaf-timberline-uhdz", "name": "Timberline UHDZ", "type": "Architectural Shingle",
             "description": "Ultra-high-definition dual shadow line.", "warranty": "Lifetime Limited"},
            {"id": "gaf-weatherwatch", "name": "WeatherWatch Leak Barrier", "type": "Ice & Water",
             "description": "Mineral-surfaced leak barrier for eaves, valleys and penetrations."},
            {"id": "gaf-feltbuster", "name": "FeltBuster Synthetic Underlayment", "type": "Underlayment",
             "description": "High-traction synthetic roofing felt."},
        ],
    },
    {
        "slug": "abc-supply",
        "name": "ABC Supply",
        "website": "https://www.abcsupply.com",
        "phone": "1-888-222-8211",
        "categories": ["Shingle", "Tile", "Metal", "Flat/TPO", "Accessories"],
        "summary": "Largest wholesale distributor of roofing supplies in the United States.",
        "locations": [
            {"city": "Phoenix", "state": "AZ", "address": "2102 W Broadway Rd, Phoenix, AZ 85041",
             "phone": "(602) 268-2212", "hours": "Mon-Fri: 6:00 AM - 4:30 PM"},
            {"city": "Dallas", "state": "TX", "address": "2801 Irving Blvd, Dallas, TX 75207",
             "phone": "(214) 631-1123", "hours": "Mon-Fri: 6:30 AM - 5:00 PM"},
        ],
        "products": [
            {"id": "abc-distribution", "name": "Full Product Line Distribution", "type": "Distribution",
             "description": "Shingles, tile, metal and low-slope systems from major manufacturers."},
        ],
    },
    {
        "slug": "srs-distribution",
        "name": "SRS Distribution",
        "website": "https://www.srs-d.com",
        "phone": "1-855-877-3311",
        "categories": ["Shingle", "Tile", "Metal", "Flat/TPO", "Accessories"],
        "summary": "Independent roofing distributor with local branches nationwide.",
        "locations": [
            {"city": "Houston", "state": "TX", "address": "5800 Clinton Dr, Houston, TX 77020",
             "phone": "(713) 674-1118", "hours": "Mon-Fri: 6:30 AM - 5:00 PM"},
        ],
        "products": [
            {"id": "srs-full-service", "name": "Full-Service Distribution", "type": "Distribution",
             "description": "Job-site delivery and rooftop loading."},
        ],
    },
    {
        "slug": "westlake-royal",
        "name": "Westlake Royal Roofing Solutions",
        "website": "https://www.westlakeroyalroofingsolutions.com",
        "phone": "1-844-624-7663",
        "categories": ["Shingle", "Tile", "Metal", "Accessories"],
        "summary": "Comprehensive roofing manufacturer including Boral, Eagle, Saxony, and EdCo brands.",
        "locations": [
            {"city": "Phoenix", "state": "AZ", "address": "2836 W Buckeye Rd, Phoenix, AZ 85009",
             "phone": "(602) 272-3551", "hours": "Mon-Fri: 7:00 AM - 4:00 PM"},
            {"city": "Tucson", "state": "AZ", "address": "4602 E 22nd St, Tucson, AZ 85711",
             "phone": "(520) 747-8510", "hours": "Mon-Fri: 7:00 AM - 4:00 PM"},
        ],
        "products": [
            {"id": "westlake-villa-tile", "name": "Boral Villa Tile", "type": "Concrete Tile",
             "description": "S-profile concrete tile.", "warranty": "50-Year Limited"},
        ],
    },
    {
        "slug": "certainteed",
        "name": "CertainTeed",
        "website": "https://www.certainteed.com",
        "phone": "1-800-233-8990",
        "categories": ["Shingle", "Accessories"],
        "summary": "Premium roofing shingles with industry-leading warranties and energy efficiency.",
        "locations": [],
        "products": [
            {"id": "certainteed-landmark", "name": "Landmark", "type": "Architectural Shingle",
             "warranty": "Lifetime Limited"},
        ],
    },
    {
        "slug": "owens-corning",
        "name": "Owens Corning",
        "website": "https://www.owenscorning.com",
        "categories": ["Shingle", "Accessories"],
        "summary": "Premium residential shingles and total protection roofing systems.",
        "locations": [],
        "products": [
            {"id": "oc-duration", "name": "TruDefinition Duration", "type": "Architectural Shingle",
             "description": "SureNail technology nailing strip.", "warranty": "Limited Lifetime"},
        ],
    },
    {
        "slug": "tamko",
        "name": "TAMKO Building Products",
        "website": "https://www.tamko.com",
        "phone": "1-800-641-4691",
        "categories": ["Shingle", "Metal", "Accessories"],
        "summary": "Family-owned manufacturer of residential roofing and metal products.",
        "locations": [],
        "products": [
            {"id": "tamko-heritage", "name": "Heritage", "type": "Laminated Shingle",
             "warranty": "Limited Lifetime"},
        ],
    },
    {
        "slug": "eagle-roofing",
        "name": "Eagle Roofing Products",
        "website": "https://eagleroofing.com",
        "categories": ["Tile"],
        "summary": "Concrete tile systems with profiles for Southwest aesthetics and durability.",
        "locations": [],
        "products": [
            {"id": "eagle-capistrano", "name": "Capistrano", "type": "Concrete Tile",
             "warranty": "Limited Lifetime"},
        ],
    },
]

_SEED_BY_SLUG = {v["slug"]: v for v in VENDOR_SEED}


@dataclass
class SyncResult:
    vendor: str
    created: int
    updated: int
    source: str

    def to_dict(self) -> dict:
        return asdict(self)


def _text(value) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value).strip() or None


def clean_products(raw: list) -> List[dict]:
    """Products with an id and a name; other entries are dropped."""
    products = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        external_id = _text(item.get("id")) or _text(item.get("external_id"))
        name = _text(item.get("name"))
        if not external_id or not name:
            continue
        products.append({
            "id": external_id[:120],
            "name": name[:255],
            "type": (_text(item.get("type")) or _text(item.get("product_type")) or "")[:80] or None,
            "description": _text(item.get("description")),
            "warranty": (_text(item.get("warranty")) or "")[:255] or None,
        })
    return products


class VendorCatalogClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        cfg = current_app.config
        self.base_url = (base_url or cfg.get("VENDOR_CATALOG_URL") or "").rstrip("/")
        self.timeout = timeout or cfg.get("HTTP_TIMEOUT", 15)

    def fetch_products(self, slug: str) -> tuple:
        """Return (products, source). Falls back to seed products on any failure."""
        seed = clean_products(_SEED_BY_SLUG.get(slug, {}).get("products", []))
        if not self.base_url:
            return seed, "seed"
        try:
            resp = requests.get(f"{self.base_url}/vendors/{slug}/products", timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            raw = data.get("products") if isinstance(data, dict) else data
            if not isinstance(raw, list):
                raise ValueError("catalog response has no product list")
            products = clean_products(raw)
            if raw and not products:
                raise ValueError("catalog returned no usable products")
            return products, "remote"
        except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
            logger.warning("Vendor catalog sync failed for %s: %s; using seed data", slug, e)
            return seed, "seed"


def ensure_seed_vendors() -> int:
    """Insert seed vendors (and their locations) that are not in the DB yet."""
    created = 0
    for entry in VENDOR_SEED:
        if Vendor.query.filter_by(slug=entry["slug"]).first():
            continue
        vendor = Vendor(
            slug=entry["slug"],
            name=entry["name"],
            website=entry.get("website"),
            phone=entry.get("phone"),
            email=entry.get("email"),
            summary=entry.get("summary"),
            categories_json=json.dumps(entry.get("categories", [])),
        )
        for loc in entry.get("locations", []):
            vendor.locations.append(VendorLocation(**loc))
        db.session.add(vendor)
        created += 1
    if created:
        db.session.commit()
    return created


def sync_vendor(vendor: Vendor, client: Optional[VendorCatalogClient] = None) -> SyncResult:
    client = client or VendorCatalogClient()
    products, source = client.fetch_products(vendor.slug)

    existing = {p.external_id: p for p in vendor.products}
    created = updated = 0
    for item in products:
        external_id, name = item["id"], item["name"]
        product = existing.get(external_id)
        if product is None:
            product = VendorProduct(external_id=external_id, name=name)
            vendor.products.append(product)
            existing[external_id] = product
            created += 1
        else:
            updated += 1
        product.name = name
        product.product_type = item["type"]
        product.description = item["description"]
        product.warranty = item["warranty"]

    vendor.last_synced_at = datetime.utcnow()
    db.session.commit()
    logger.info("Synced vendor %s: %d created, %d updated (%s)", vendor.slug, created, updated, source)
    return SyncResult(vendor=vendor.slug, created=created, updated=updated, source=source)


def state_for_zip(zip_code: Optional[str]) -> Optional[str]:
    region, _ = lookup_region(zip_code or "")
    tail = region.split()[-1] if region else ""
    return tail if len(tail) == 2 and tail.isupper() else None


def vendors_near(zip_code: Optional[str] = None) -> List[Vendor]:
    """Vendors with a location in the ZIP's state; all vendors otherwise."""
    vendors = Vendor.query.order_by(Vendor.name).all()
    state = state_for_zip(zip_code)
    if not state:
        return vendors
    nearby = [v for v in vendors if any(loc.state == state for loc in v.locations)]
    return nearby or vendors


def vendor_to_dict(vendor: Vendor, *, include_products: bool = False) -> dict:
    data = {
        "slug": vendor.slug,
        "name": vendor.name,
        "website": vendor.website,
        "phone": vendor.phone,
        "email": vendor.email,
        "summary": vendor.summary,
        "categories": vendor.categories,
        "last_synced_at": vendor.last_synced_at.isoformat() if vendor.last_synced_at else None,
        "locations": [
            {"city": l.city, "state": l.state, "address": l.address, "phone": l.phone, "hours": l.hours}
            for l in vendor.locations
        ],
    }
    if include_products:
        data["products"] = [
            {
                "external_id": p.external_id,
                "name": p.name,
                "type": p.product_type,
                "description": p.description,
                "warranty": p.warranty,
            }
            for p in vendor.products
        ]
    return data
