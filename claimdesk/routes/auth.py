from __future__ import annotations

from flask import current_app, flash, redirect, render_template, request, session, url_for

from ..models import Membership, User
from . import bp
from .helpers import safe_next


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = (request.form.get("email") or "").strip().lower()
        password = request.form.get("password") or ""
        user = User.query.filter_by(email=email).first()
        if not user or not user.is_active or not user.check_password(password):
            current_app.logger.info("Failed login for %s", email or "<blank>")
            flash("Invalid email or password.", "error")
            return render_template("pages/login.html", email=email), 401

        session.clear()
        session["user_id"] = user.id
        membership = Membership.query.filter_by(user_id=user.id).order_by(Membership.id).first()
        if membership:
            session["org_id"] = membership.org_id
        return redirect(safe_next(url_for("main.dashboard")))

    return render_template("pages/login.html", email="")


@bp.route("/logout")
def logout():
    session.clear()
    flash("Signed out.", "success")
    return redirect(url_for("main.login"))


@bp.route("/switch-org/<int:org_id>", methods=["POST"])
def switch_org(org_id: int):
    user_id = session.get("user_id")
    if user_id and Membership.query.filter_by(user_id=user_id, org_id=org_id).first():
        session["org_id"] = org_id
    else:
        flash("You are not a member of that organization.", "error")
    return redirect(url_for("main.dashboard"))
