"""Trade-professional profiles (one per user, publicly viewable by slug)."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError

from ..errors import InvalidArgument, NotFound
from ..extensions import db
from ..models import TradeProfile
from ..utils.validation import as_text, is_valid_zip

TRADES = ["roofing", "siding", "gutters", "windows", "general_contractor", "public_adjuster", "restoration"]
SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    return SLUG_RE.sub("-", (text or "").lower()).strip("-")


def _unique_slug(base: str, profile_id: Optional[int]) -> str:
    slug = base or "pro"
    n = 2
    while True:
        clash = TradeProfile.query.filter(TradeProfile.slug == slug)
        if profile_id:
            clash = clash.filter(TradeProfile.id != profile_id)
        if not clash.first():
            return slug
        slug = f"{base}-{n}"
        n += 1


def _parse_zips(raw) -> list:
    if raw is None or raw == "":
        return []
    items = raw if isinstance(raw, list) else re.split(r"[,\s]+", str(raw))
    zips = [str(z).strip() for z in items if str(z).strip()]
    bad = [z for z in zips if not is_valid_zip(z)]
    if bad:
        raise InvalidArgument(f"Invalid service ZIP(s): {', '.join(bad)}")
    return list(dict.fromkeys(zips))


def upsert_profile(user, org, data: Dict[str, Any]) -> TradeProfile:
    profile = user.trade_profile
    display_name = as_text(data.get("display_name"), "Display name") or (profile.display_name if profile else "")
    if not display_name:
        raise InvalidArgument("Display name is required.")
    trade = as_text(data.get("trade"), "Trade") or (profile.trade if profile else None)
    if trade and trade not in TRADES:
        raise InvalidArgument(f"Unknown trade '{trade}'.")

    years = data.get("years_experience")
    if years not in (None, ""):
        try:
            years = int(years)
        except (TypeError, ValueError):
            raise InvalidArgument("Years of experience must be a whole number.")
        if years < 0:
            raise InvalidArgument("Years of experience cannot be negative.")
    else:
        years = profile.years_experience if profile else None

    requested_slug = slugify(as_text(data.get("slug"), "Slug")) or (profile.slug if profile else slugify(display_name))
    slug = _unique_slug(requested_slug, profile.id if profile else None)
    if profile is None:
        profile = TradeProfile(user_id=user.id, org_id=org.id if org else None, slug=slug)
        db.session.add(profile)
    profile.slug = slug
    profile.display_name = display_name
    profile.trade = trade
    profile.years_experience = years
    if "bio" in data:
        profile.bio = as_text(data.get("bio"), "Bio") or None
    if "license_number" in data:
        profile.license_number = as_text(data.get("license_number"), "License number") or None
    if "service_zips" in data:
        profile.service_zips_json = json.dumps(_parse_zips(data.get("service_zips")))
    if "is_public" in data:
        value = data.get("is_public")
        profile.is_public = value if isinstance(value, bool) else str(value).lower() in ("1", "true", "on", "yes")

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidArgument("That profile URL is already taken.")
    return profile


def public_profile(slug: str) -> TradeProfile:
    profile = TradeProfile.query.filter_by(slug=slug, is_public=True).first()
    if profile is None:
        raise NotFound("Profile not found.")
    return profile


def profile_to_dict(profile: TradeProfile) -> Dict[str, Any]:
    return {
        "slug": profile.slug,
        "display_name": profile.display_name,
        "trade": profile.trade,
        "bio": profile.bio,
        "years_experience": profile.years_experience,
        "license_number": profile.license_number,
        "service_zips": profile.service_zips,
        "is_public": profile.is_public,
        "company": profile.organization.name if profile.organization else None,
    }
