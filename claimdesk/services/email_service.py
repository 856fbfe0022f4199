import logging
import smtplib
import ssl
from email.message import EmailMessage

from flask import current_app

from ..errors import ExternalServiceError, FailedPrecondition, InvalidArgument
from ..extensions import db
from ..models import ClaimActivity
from ..utils.validation import as_text, is_valid_email

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Claim {claim_number} - {insured_name} - Documentation Packet"
DEFAULT_BODY = (
    "Hello,\n\n"
    "Attached is the documentation packet for claim {claim_number} "
    "({insured_name}, {property_address}) with {carrier}.\n\n"
    "Please reach out with any questions.\n\n"
    "{org_name}"
)


def build_email_context(claim):
    """
    Build the token context for a claim email.
    Missing values become empty strings.
    """
    org = getattr(claim, "organization", None)
    prop = getattr(claim, "property", None)
    return {
        "claim_number": getattr(claim, "claim_number", "") or "",
        "insured_name": getattr(claim, "insured_name", "") or "",
        "carrier": getattr(claim, "carrier", "") or "your carrier",
        "property_address": prop.full_address if prop else "",
        "org_name": getattr(org, "name", "") or "",
        "adjuster_name": getattr(claim, "adjuster_name", "") or "",
    }


def render_email_template(template_text, context):
    """
    Controlled token replacement.
    Supports both {token} and {{ token }} styles.
    Leaves unknown tokens untouched.
    """
    if not template_text:
        return ""

    rendered = template_text
    for key, value in context.items():
        value_str = str(value or "")
        rendered = rendered.replace(f"{{{{ {key} }}}}", value_str)
        rendered = rendered.replace(f"{{{{{key}}}}}", value_str)
        rendered = rendered.replace(f"{{{key}}}", value_str)
    return rendered


def _smtp_settings():
    cfg = current_app.config
    host = cfg.get("SMTP_HOST")
    sender = cfg.get("SMTP_FROM") or cfg.get("SMTP_USER")
    if not host or not sender:
        raise FailedPrecondition("Outbound email is not configured (SMTP_HOST / SMTP_FROM).")
    return {
        "host": host,
        "port": cfg.get("SMTP_PORT") or 465,
        "username": cfg.get("SMTP_USER"),
        "password": cfg.get("SMTP_PASSWORD"),
        "sender": sender,
        "encryption": (cfg.get("SMTP_ENCRYPTION") or "ssl").lower(),
    }


def send_smtp_email(to_email, subject, body, attachments=None):
    """
    Send a plain-text email using the app's SMTP settings.
    attachments: list of tuples (filename, bytes_data, mimetype)
    """
    settings = _smtp_settings()

    msg = EmailMessage()
    msg["From"] = settings["sender"]
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body or "")

    for filename, data, mimetype in attachments or []:
        maintype, subtype = mimetype.split("/", 1)
        msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=filename)

    ssl_context = ssl.create_default_context()
    try:
        if settings["encryption"] == "ssl":
            with smtplib.SMTP_SSL(settings["host"], settings["port"], context=ssl_context) as server:
                if settings["username"]:
                    server.login(settings["username"], settings["password"])
                server.send_message(msg)
        else:
            with smtplib.SMTP(settings["host"], settings["port"]) as server:
                if settings["encryption"] == "tls":
                    server.starttls(context=ssl_context)
                if settings["username"]:
                    server.login(settings["username"], settings["password"])
                server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("SMTP delivery to %s failed: %s", to_email, e)
        raise ExternalServiceError("Email could not be delivered.")


def send_packet_to_carrier(claim, pdf_bytes, filename, *, to_email=None, subject=None, body=None, user=None):
    """Email a generated packet to the claim's adjuster (or an explicit address)."""
    to_email = as_text(to_email, "Recipient") or (claim.adjuster_email or "").strip()
    subject = as_text(subject, "Subject")
    body = as_text(body, "Body")
    if not to_email:
        raise InvalidArgument("No recipient: set the adjuster email or pass 'to'.")
    if not is_valid_email(to_email):
        raise InvalidArgument("Recipient email is invalid.")

    context = build_email_context(claim)
    subject = render_email_template(subject or DEFAULT_SUBJECT, context)
    body = render_email_template(body or DEFAULT_BODY, context)

    send_smtp_email(to_email, subject, body, attachments=[(filename, pdf_bytes, "application/pdf")])

    db.session.add(
        ClaimActivity(
            org_id=claim.org_id,
            claim_id=claim.id,
            user_id=user.id if user is not None else None,
            kind="email",
            message=f"Packet {filename} emailed to {to_email}",
        )
    )
    db.session.commit()
    logger.info("Sent packet for claim %s", claim.id)
    return {"to": to_email, "subject": subject, "filename": filename}
