"""Error taxonomy shared by services, the JSON API and page routes.

Services raise these; `register_error_handlers` turns them into
`{"ok": false, "error": <code>, "message": ...}` JSON under /api/ and into a
flashed message + error page everywhere else.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import flash, jsonify, redirect, render_template, request, url_for
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    code = "internal"
    status = 500

    def __init__(self, message: str = "", *, details: Optional[Any] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self) -> dict:
        payload = {"ok": False, "error": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidArgument(ApiError):
    code = "invalid-argument"
    status = 400


class Unauthenticated(ApiError):
    code = "unauthenticated"
    status = 401


class PermissionDenied(ApiError):
    code = "permission-denied"
    status = 403


class NotFound(ApiError):
    code = "not-found"
    status = 404


class FailedPrecondition(ApiError):
    code = "failed-precondition"
    status = 409


class ExternalServiceError(ApiError):
    code = "unavailable"
    status = 502


def _wants_json() -> bool:
    return request.path.startswith("/api/")


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def _handle_api_error(err: ApiError):
        if _wants_json():
            return jsonify(err.to_dict()), err.status
        if isinstance(err, Unauthenticated):
            return redirect(url_for("main.login", next=request.path))
        flash(err.message, "error")
        return render_template("error.html", error=err), err.status

    @app.errorhandler(HTTPException)
    def _handle_http_error(err: HTTPException):
        if not _wants_json():
            return err
        code = "not-found" if err.code == 404 else (err.name or "error").lower().replace(" ", "-")
        return jsonify({"ok": False, "error": code, "message": err.description}), err.code

    @app.errorhandler(Exception)
    def _handle_unexpected(err: Exception):
        if isinstance(err, HTTPException):
            return _handle_http_error(err)
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if _wants_json():
            return jsonify({"ok": False, "error": "internal", "message": "Internal server error"}), 500
        return render_template("error.html", error=ApiError("Something went wrong.")), 500
