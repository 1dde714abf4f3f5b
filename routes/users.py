"""Users blueprint: registration and lookup over the record store."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest, Conflict, NotFound
from werkzeug.security import generate_password_hash

from storage.record_store import DuplicateKey, get_record_store
from utils.request_validation import parse_json_request

users_bp = Blueprint("users", __name__)


def _normalize_email(raw_email: object) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    if not isinstance(raw_email, str):
        return ""
    return raw_email.strip().lower()


@users_bp.route("", methods=["POST"])
def register() -> tuple:
    """Register a new user with an email and password."""
    payload = parse_json_request(request)
    email = _normalize_email(payload.get("email"))
    password = payload.get("password")

    if not email or not isinstance(password, str) or not password.strip():
        raise BadRequest("Email and password are required.")

    store = get_record_store()
    try:
        user_id = store.insert_user(email, generate_password_hash(password))
    except DuplicateKey as exc:
        raise Conflict("A user with that email already exists.") from exc

    return (
        jsonify({"id": user_id, "email": email}),
        HTTPStatus.CREATED,
    )


@users_bp.route("/<int:user_id>", methods=["GET"])
def get_user(user_id: int):
    user = get_record_store().get_user(user_id)
    if user is None:
        raise NotFound("User not found.")
    return jsonify(user.to_dict())
