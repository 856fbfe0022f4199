"""Filesystem document storage for generated PDFs.

Layout: <DOCUMENTS_ROOT>/<org slug>/claim_<id>/<filename>. Stored paths are
relative to the root so the root can move between machines.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from flask import current_app

from .errors import NotFound


def _safe_segment(text: str) -> str:
    """Filesystem-safe name chunk."""
    return "".join(ch if ch.isalnum() or ch in ("-", "_") else "_" for ch in (text or ""))


def get_documents_root() -> Path:
    """Resolve the root folder for all documents.

    - If DOCUMENTS_ROOT is ABSOLUTE, use it.
    - If RELATIVE, treat as relative to the project root (current_app.root_path).

    Always creates the folder if missing.
    """
    raw = current_app.config.get("DOCUMENTS_ROOT") or "documents"
    root = Path(raw).expanduser()
    if not root.is_absolute():
        root = Path(current_app.root_path).resolve().parent / root
    root.mkdir(parents=True, exist_ok=True)
    return root


def claim_folder(claim) -> Path:
    org_segment = _safe_segment(claim.organization.slug if claim.organization else f"org_{claim.org_id}")
    folder = get_documents_root() / org_segment / f"claim_{claim.id}"
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def build_filename(claim, kind: str, suffix: str = "pdf") -> str:
    stamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S_%f")
    base = _safe_segment(f"{claim.claim_number}_{kind}") or kind
    return f"{base}_{stamp}.{suffix}"


def save_bytes(claim, filename: str, data: bytes) -> str:
    """Write data under the claim folder; return the root-relative path."""
    path = claim_folder(claim) / _safe_segment(Path(filename).stem)
    path = path.with_suffix(Path(filename).suffix)
    path.write_bytes(data)
    return str(path.relative_to(get_documents_root()))


def resolve_path(relative: str) -> Path:
    """Absolute path for a stored document; refuses paths outside the root."""
    root = get_documents_root().resolve()
    path = (root / relative).resolve()
    if root not in path.parents or not path.exists():
        raise NotFound("Document not found.")
    return path
