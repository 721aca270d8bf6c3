"""
Customer-facing structured feedback form, mounted at ``/api/feedback``.
"""

import logging

from flask import Blueprint, current_app, render_template, request, url_for

import database
from advisor_routes import load_advisor
from feedback_entries import (
    COMMENT_QUESTION,
    QUESTION_KEYS,
    RATING_MAX,
    RATING_MIN,
    SURVEY_QUESTIONS,
    parse_rating,
)


logger = logging.getLogger(__name__)

feedback_bp = Blueprint("feedback", __name__)


def form_data():
    if request.form:
        return request.form
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@feedback_bp.route("/<advisor_id>", methods=["GET"])
def feedback_form(advisor_id):
    advisor = None
    if database.is_valid_advisor_id(advisor_id):
        advisor = database.get_advisor_by_id(current_app.config["DATABASE"], advisor_id)
    if advisor is None:
        return render_template("advisor_not_found.html"), 404

    return render_template(
        "feedback_form.html",
        advisor_name=advisor["name"],
        action_url=url_for("feedback.submit_feedback", advisor_id=advisor["id"]),
        questions=SURVEY_QUESTIONS,
        comment_question=COMMENT_QUESTION,
        rating_values=range(RATING_MIN, RATING_MAX + 1),
    )


@feedback_bp.route("/submit/<advisor_id>", methods=["POST"])
def submit_feedback(advisor_id):
    advisor = load_advisor(advisor_id)
    data = form_data()

    ratings = [parse_rating(data.get(key), key) for key in QUESTION_KEYS]
    comment = str(data.get("comment") or "").strip()

    database.append_survey_feedback(
        current_app.config["DATABASE"], advisor["id"], ratings, comment
    )
    logger.info("Feedback submitted for advisor %s", advisor["id"])
    return render_template(
        "thank_you.html",
        message="Your feedback has been successfully recorded.",
    )
