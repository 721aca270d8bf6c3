"""
Advisor API: registration, login, profile, QR codes and performance.

Mounted at ``/api/advisors``.
"""

import logging
import sqlite3

from flask import Blueprint, current_app, jsonify, request, send_from_directory

import database
from api_errors import (
    ApiError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from auth import (
    INVALID_CREDENTIALS,
    advisor_scope_required,
    create_token,
    hash_password,
    manager_required,
    verify_password,
)
from performance import advisor_performance, advisor_summary
from qr_utils.provisioning import QR_ERRORS


logger = logging.getLogger(__name__)

advisors_bp = Blueprint("advisors", __name__)

QR_CACHE_SECONDS = 31557600


# -----------------------------
# Helpers
# -----------------------------
def _db():
    return current_app.config["DATABASE"]


def _provisioner():
    return current_app.extensions["qr_provisioner"]


def load_advisor(advisor_id):
    if not database.is_valid_advisor_id(advisor_id):
        raise ValidationError("Invalid Advisor ID format")
    advisor = database.get_advisor_by_id(_db(), advisor_id)
    if advisor is None:
        raise NotFoundError("Advisor not found")
    return advisor


def provision_qr(advisor, force=False):
    """Make sure the advisor's QR image exists and its URL is stored."""
    provisioner = _provisioner()
    if force:
        qr_url = provisioner.regenerate(advisor["id"], label=advisor["name"])
    else:
        qr_url = provisioner.ensure(advisor["id"], label=advisor["name"])
    if qr_url != advisor.get("qr_code"):
        database.set_qr_code(_db(), advisor["id"], qr_url)
        advisor["qr_code"] = qr_url
    return qr_url


def _try_provision_qr(advisor):
    # A QR failure must not block registration or login; the next login or
    # QR fetch backfills it.
    try:
        return provision_qr(advisor)
    except QR_ERRORS as exc:
        logger.warning("Could not generate QR code for advisor %s: %s", advisor["id"], exc)
        return None


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    return data if isinstance(data, dict) else {}


def _text(data, key):
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


# -----------------------------
# Registration & login
# -----------------------------
@advisors_bp.route("/register", methods=["POST"])
def register():
    data = _json_body()
    name = _text(data, "name")
    email = _text(data, "email")
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    role = data.get("role")
    if role is None or role == "":
        role = database.ADVISOR_ROLE

    if not name or not email or not password:
        raise ValidationError("Name, email and password are required")
    if not isinstance(role, str) or role.strip() not in database.ROLES:
        raise ValidationError("Role must be 'advisor' or 'manager'")
    role = role.strip()

    db_path = _db()
    if database.find_advisor_by_email(db_path, email):
        raise ConflictError("User with this email already exists")

    password_hash = hash_password(password, rounds=current_app.config["BCRYPT_ROUNDS"])
    try:
        advisor_id = database.insert_advisor(db_path, name, email, password_hash, role)
    except sqlite3.IntegrityError:
        raise ConflictError("User with this email already exists") from None

    if role == database.ADVISOR_ROLE:
        _try_provision_qr(database.get_advisor_by_id(db_path, advisor_id))

    logger.info("Registered %s %s", role, advisor_id)
    return jsonify({
        "message": "User registered successfully",
        "advisorId": advisor_id,
        "role": role,
    }), 201


@advisors_bp.route("/login", methods=["POST"])
def login():
    data = _json_body()
    email = _text(data, "email")
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    if not email or not password:
        raise ValidationError("Email and password are required")

    advisor = database.find_advisor_by_email(_db(), email)
    password_hash = advisor["password_hash"] if advisor else None
    verified = verify_password(password, password_hash, rounds=current_app.config["BCRYPT_ROUNDS"])
    if advisor is None or not verified:
        raise AuthenticationError(INVALID_CREDENTIALS)

    if advisor["role"] == database.ADVISOR_ROLE:
        if not advisor.get("qr_code") or not _provisioner().has_artifact(advisor["id"]):
            _try_provision_qr(advisor)

    token = create_token(advisor["id"], advisor["role"], current_app.config["JWT_SECRET"])
    logger.info("Advisor %s logged in as %s", advisor["id"], advisor["role"])
    return jsonify({
        "token": token,
        "advisorId": advisor["id"],
        "role": advisor["role"],
    }), 200


# -----------------------------
# Profile & QR codes
# -----------------------------
@advisors_bp.route("/details/<advisor_id>", methods=["GET"])
@advisor_scope_required
def advisor_details(advisor_id):
    advisor = load_advisor(advisor_id)
    return jsonify({
        "id": advisor["id"],
        "name": advisor["name"],
        "email": advisor["email"],
        "role": advisor["role"],
        "qrCode": advisor["qr_code"],
    })


def _qr_response(advisor_id, force):
    advisor = load_advisor(advisor_id)
    if advisor["role"] != database.ADVISOR_ROLE:
        raise ValidationError("QR codes are only issued to advisors")
    try:
        qr_url = provision_qr(advisor, force=force)
    except QR_ERRORS:
        logger.exception("QR code generation failed for advisor %s", advisor_id)
        action = "regenerating" if force else "fetching"
        raise ApiError(f"Error {action} QR Code", 500) from None
    return jsonify({"qrCodeURL": qr_url})


@advisors_bp.route("/<advisor_id>/qrcode", methods=["GET"])
@advisor_scope_required
def get_qr_code(advisor_id):
    return _qr_response(advisor_id, force=False)


@advisors_bp.route("/<advisor_id>/regenerate-qrcode", methods=["POST"])
@advisor_scope_required
def regenerate_qr_code(advisor_id):
    return _qr_response(advisor_id, force=True)


@advisors_bp.route("/qrcodes/<path:filename>", methods=["GET"])
def qr_code_image(filename):
    return send_from_directory(_provisioner().qr_dir, filename, max_age=QR_CACHE_SECONDS)


# -----------------------------
# Performance
# -----------------------------
@advisors_bp.route("/performance/<advisor_id>", methods=["GET"])
@advisor_scope_required
def get_advisor_performance(advisor_id):
    advisor = load_advisor(advisor_id)
    entries = database.get_feedback(_db(), advisor_id)
    return jsonify(advisor_performance(advisor, entries))


@advisors_bp.route("/performance", methods=["GET"])
@manager_required
def get_all_advisors_performance():
    db_path = _db()
    advisors = database.get_all_advisors(db_path, role=database.ADVISOR_ROLE)
    if not advisors:
        raise NotFoundError("No advisors found")
    return jsonify([
        advisor_summary(advisor, database.get_feedback(db_path, advisor["id"]))
        for advisor in advisors
    ])
