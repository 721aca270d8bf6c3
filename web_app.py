"""
Flask web app for advisor feedback collected through QR codes.
"""

import logging
import os

from flask import Blueprint, Flask, current_app, jsonify, render_template, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

import database
from advisor_routes import advisors_bp, load_advisor
from api_errors import ApiError, ValidationError
from feedback_entries import RATING_MAX, RATING_MIN, parse_rating
from feedback_routes import feedback_bp, form_data
from qr_utils import QRProvisioner, resolve_public_base_url
from settings_store import database_path, load_settings


logger = logging.getLogger(__name__)

site_bp = Blueprint("site", __name__)


# -----------------------------
# Liveness
# -----------------------------
@site_bp.route("/")
def index():
    return "API is running...", 200, {"Content-Type": "text/plain; charset=utf-8"}


# -----------------------------
# Simple rating form
# -----------------------------
@site_bp.route("/feedback/<advisor_id>", methods=["GET"])
def simple_feedback_form(advisor_id):
    advisor = load_advisor(advisor_id)
    return render_template(
        "simple_feedback_form.html",
        advisor_id=advisor["id"],
        advisor_name=advisor["name"],
        rating_min=RATING_MIN,
        rating_max=RATING_MAX,
    )


@site_bp.route("/submit-feedback", methods=["POST"])
def submit_simple_feedback():
    data = form_data()
    advisor_id = str(data.get("advisorId") or "").strip()
    raw_rating = str(data.get("rating") or "").strip()

    if not advisor_id or not raw_rating:
        raise ValidationError("Advisor ID and rating are required")

    advisor = load_advisor(advisor_id)
    rating = parse_rating(raw_rating, "rating")
    comments = str(data.get("comments") or "").strip()

    database.append_rating_feedback(
        current_app.config["DATABASE"], advisor["id"], rating, comments
    )
    logger.info("Feedback submitted for %s: rating %s", advisor["id"], rating)
    return render_template(
        "thank_you.html",
        message="Your feedback has been submitted successfully.",
        closing_note="You may now close this page.",
    )


# -----------------------------
# Error handling
# -----------------------------
def handle_api_error(error):
    return jsonify(error.to_dict()), error.status_code


def handle_http_error(error):
    return jsonify({"message": error.description}), error.code


def handle_unexpected_error(error):
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({"message": "Internal server error"}), 500


# -----------------------------
# App factory
# -----------------------------
def create_app(settings=None):
    settings = load_settings() if settings is None else settings
    if not settings.get("jwt_secret"):
        raise RuntimeError("JWT_SECRET is not configured")

    app = Flask(__name__)
    CORS(app)

    public_base_url = resolve_public_base_url(settings)
    app.config.update(
        DATABASE=database_path(settings),
        JWT_SECRET=settings["jwt_secret"],
        BCRYPT_ROUNDS=int(settings.get("bcrypt_rounds", 10)),
        PUBLIC_BASE_URL=public_base_url,
    )

    provisioner = QRProvisioner(os.path.abspath(settings["qr_code_dir"]), public_base_url)
    provisioner.init_storage()
    app.extensions["qr_provisioner"] = provisioner

    database.init_db(app.config["DATABASE"])

    app.register_blueprint(site_bp)
    app.register_blueprint(advisors_bp, url_prefix="/api/advisors")
    app.register_blueprint(feedback_bp, url_prefix="/api/feedback")

    app.register_error_handler(ApiError, handle_api_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)

    logger.info("Public links use base URL %s", public_base_url)
    return app


# -----------------------------
# Run Server
# -----------------------------
if __name__ == "__main__":
    settings = load_settings()
    logging.basicConfig(
        level=str(settings.get("log_level", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s]: %(message)s",
    )
    app = create_app(settings)
    app.run(host=settings["flask_host"], port=int(settings["flask_port"]), debug=False)
