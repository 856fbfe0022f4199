from flask import flash, redirect, render_template, request, url_for

from ..errors import ApiError
from ..services import trades_service
from ..tenancy import current_org, current_user, require_auth
from . import bp


@bp.route("/trades/profile", methods=["GET", "POST"])
@require_auth
def trade_profile_edit():
    user = current_user()
    profile = user.trade_profile
    if request.method == "POST":
        data = {
            "display_name": request.form.get("display_name"),
            "slug": request.form.get("slug"),
            "trade": request.form.get("trade"),
            "bio": request.form.get("bio"),
            "years_experience": request.form.get("years_experience"),
            "license_number": request.form.get("license_number"),
            "service_zips": request.form.get("service_zips"),
            "is_public": request.form.get("is_public") == "on",
        }
        try:
            profile = trades_service.upsert_profile(user, current_org(), data)
        except ApiError as e:
            flash(e.message, "error")
            return render_template(
                "pages/trade_profile_form.html", profile=profile, values=data, trades=trades_service.TRADES
            ), e.status
        flash("Profile saved.", "success")
        return redirect(url_for("main.trade_profile_edit"))

    return render_template(
        "pages/trade_profile_form.html", profile=profile, values={}, trades=trades_service.TRADES
    )


@bp.route("/pros/<slug>")
def pro_public(slug: str):
    profile = trades_service.public_profile(slug)
    return render_template("pages/pro_public.html", profile=profile)
