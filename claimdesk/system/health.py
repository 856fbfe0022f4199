"""
System health report for `GET /api/health`.

All functions in this module must be:
- Read-only (apart from the writability check file)
- Fast
- Safe to call in a request context

No subprocess. No outbound calls beyond the LLM availability check.
"""

import logging
import os
import shutil
from typing import Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..ai.llm import llm
from ..extensions import db
from ..storage import get_documents_root

logger = logging.getLogger(__name__)


def disk_usage(path: str = "/") -> Dict[str, float]:
    """
    Return disk usage stats (GB) for the given path, plus percent free.
    """
    total, used, free = shutil.disk_usage(path)
    gb = 1024 ** 3
    return {
        "total_gb": round(total / gb, 2),
        "used_gb": round(used / gb, 2),
        "free_gb": round(free / gb, 2),
        "percent_free": round(free / total * 100, 1) if total else 0.0,
    }


def disk_writable(path: str) -> bool:
    try:
        test_path = os.path.join(path, ".claimdesk_write_test")
        with open(test_path, "w") as f:
            f.write("ok")
        os.remove(test_path)
        return True
    except OSError:
        return False


def database_ok() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Health check: database unreachable: %s", e)
        db.session.rollback()
        return False


def health_report(documents_root: Optional[str] = None) -> Dict[str, object]:
    root = documents_root or str(get_documents_root())
    report = {
        "database": database_ok(),
        "llm": llm.status(),
        "documents_root": root,
        "documents_writable": disk_writable(root),
        "disk": disk_usage(root),
        "warnings": [],
    }

    if not report["database"]:
        report["warnings"].append("Database unreachable")
    if not report["documents_writable"]:
        report["warnings"].append("Documents folder not writable")
    if report["disk"].get("percent_free", 100) < 15:
        report["warnings"].append("Low disk space")

    report["ok"] = report["database"] and report["documents_writable"]
    return report
