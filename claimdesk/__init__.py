import logging
import re
from datetime import date, datetime

from dotenv import load_dotenv
from flask import Flask, has_request_context
from markupsafe import Markup, escape

load_dotenv()

from .config import Config, TestingConfig  # noqa: E402
from .errors import register_error_handlers  # noqa: E402
from .extensions import db  # noqa: E402
from . import tenancy  # noqa: E402

APP_VERSION = "0.1.0"


# --- Jinja filters ---
def _coerce_datetime(value):
    """datetime for date, datetime or ISO text; None when it cannot be read."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def format_date(value, fmt="%m/%d/%Y"):
    """Dates of loss, inspections and letters use US MM/DD/YYYY."""
    if not value:
        return ""
    moment = _coerce_datetime(value)
    return moment.strftime(fmt) if moment else str(value)


def format_datetime(value, fmt="%m/%d/%Y %H:%M"):
    return format_date(value, fmt)


def format_currency(value, cents=True):
    """$1,234.56 (or $1,234 with cents=False). None renders as "-"."""
    if value is None or value == "":
        return "-"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value)
    return f"${amount:,.2f}" if cents else f"${amount:,.0f}"


BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)


def nl2br(value):
    """Adjuster notes and AI text keep their line breaks; everything else is escaped."""
    if value is None:
        return Markup("")
    lines = BR_TAG.sub("\n", str(value)).splitlines()
    return Markup("<br>\n").join(escape(line) for line in lines)


def stage_label(value):
    return (value or "").replace("_", " ").title()


def create_app(config_class=None):
    """Application factory for ClaimDesk."""
    app = Flask(__name__)
    app.config.from_object(config_class or Config)
    app.config.setdefault("APP_VERSION", APP_VERSION)

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise RuntimeError("DATABASE_URL is not set. Refusing to start without a database.")

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register Jinja filters
    app.jinja_env.filters["format_date"] = format_date
    app.jinja_env.filters["format_datetime"] = format_datetime
    app.jinja_env.filters["format_currency"] = format_currency
    app.jinja_env.filters["nl2br"] = nl2br
    app.jinja_env.filters["stage_label"] = stage_label

    db.init_app(app)
    register_error_handlers(app)
    tenancy.init_app(app)

    from .api import api_bp
    from .routes import bp as main_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix="/api")

    @app.context_processor
    def inject_identity():
        if not has_request_context():
            return {}
        role = tenancy.current_role()
        return {
            "current_user": tenancy.current_user(),
            "current_org": tenancy.current_org(),
            "current_role": role,
            "can": lambda perm: tenancy.has_permission(role, perm),
        }

    # Schema is managed by Alembic in production; tests and local SQLite get create_all.
    if app.config.get("TESTING") or app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        with app.app_context():
            from . import models  # noqa: F401

            db.create_all()

    return app


__all__ = ["create_app", "Config", "TestingConfig", "db"]
