"""Shows blueprint: CRUD over shows with optional image uploads."""

from __future__ import annotations

import os
from typing import Iterable

from flask import Blueprint, current_app, jsonify, request
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, NotFound

from models.show import Show
from storage.local_storage import LocalStorage
from storage.record_store import get_record_store
from utils.request_validation import parse_datetime, parse_request_fields

shows_bp = Blueprint("shows", __name__)

MAX_UPLOAD_SIZE_DEFAULT = 10 * 1024 * 1024  # 10 MB
ALLOWED_EXTENSIONS_DEFAULT = {"jpg", "jpeg", "png", "gif", "webp"}
TEXT_FIELDS = ("title", "description", "location")


def _allowed_extensions() -> set[str]:
    configured = current_app.config.get("ALLOWED_UPLOAD_TYPES")
    if not configured:
        return set(ALLOWED_EXTENSIONS_DEFAULT)
    if isinstance(configured, str):
        values: Iterable[str] = configured.split(",")
    else:
        values = configured

    normalized = {str(raw).strip().lower().lstrip(".") for raw in values}
    normalized.discard("")
    if not normalized:
        return set(ALLOWED_EXTENSIONS_DEFAULT)
    if "jpeg" in normalized or "jpg" in normalized:
        normalized.update({"jpg", "jpeg"})
    return normalized


def _validate_image(file: FileStorage) -> None:
    if file.filename is None or file.filename.strip() == "":
        raise BadRequest("An image file is required.")

    extension = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if extension not in _allowed_extensions():
        allowed = ", ".join(sorted(_allowed_extensions()))
        raise BadRequest(f"File type not allowed. Allowed types: {allowed}.")

    max_size = int(current_app.config.get("MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE_DEFAULT))
    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    if size > max_size:
        raise BadRequest(f"File exceeds the maximum upload size of {max_size} bytes.")


def _upload_storage() -> LocalStorage:
    return LocalStorage(current_app.config["UPLOAD_DIR"])


def _save_image() -> str | None:
    """Store the request's ``image`` file, if any, and return its name."""

    file = request.files.get("image")
    if file is None:
        return None
    if not isinstance(file, FileStorage):
        raise BadRequest("image must be a file upload.")

    _validate_image(file)
    storage = _upload_storage()
    return storage.save(file, LocalStorage.unique_name(file.filename or "image"))


def _discard_image(image: str | None) -> None:
    """Remove a freshly saved image whose show was never stored."""

    if image is not None:
        _upload_storage().delete(image)


def _show_fields(data: dict, partial: bool = False) -> dict:
    fields: dict = {}

    for name in TEXT_FIELDS:
        if name not in data:
            continue
        value = data[name]
        if value is not None and not isinstance(value, str):
            raise BadRequest(f"{name} must be a string.")
        fields[name] = value.strip() if isinstance(value, str) else None

    if not partial and not fields.get("title"):
        raise BadRequest("title is required")
    if "title" in fields and not fields["title"]:
        raise BadRequest("title must not be empty")
    if fields.get("title") and len(fields["title"]) > 200:
        raise BadRequest("title must be at most 200 characters")

    if "starts_at" in data:
        fields["starts_at"] = parse_datetime(data.get("starts_at"), "starts_at")

    return fields


def _get_show_or_404(show_id: int) -> Show:
    show = get_record_store().get_show(show_id)
    if show is None:
        raise NotFound("Show not found.")
    return show


@shows_bp.route("", methods=["GET"])
def list_shows():
    """Return every show, newest first."""

    shows = get_record_store().list_shows()
    payload = [show.to_dict() for show in shows]
    return jsonify({"results": payload, "count": len(payload)})


@shows_bp.route("/<int:show_id>", methods=["GET"])
def get_show(show_id: int):
    return jsonify(_get_show_or_404(show_id).to_dict())


@shows_bp.route("", methods=["POST"])
def create_show():
    """Create a show from JSON or from a multipart form with an image."""

    data = parse_request_fields(request)
    fields = _show_fields(data)

    image = _save_image()
    if image is not None:
        fields["image"] = image

    try:
        show = get_record_store().create_show(**fields)
    except Exception:
        _discard_image(image)
        raise
    current_app.logger.info("Created show %s", show.id)
    return jsonify(show.to_dict()), 201


@shows_bp.route("/<int:show_id>", methods=["PUT", "PATCH"])
def update_show(show_id: int):
    """Update some or all fields of a show, replacing its image if one is sent."""

    show = _get_show_or_404(show_id)
    previous_image = show.image

    data = parse_request_fields(request)
    fields = _show_fields(data, partial=True)

    image = _save_image()
    if image is not None:
        fields["image"] = image

    try:
        show = get_record_store().update_show(show_id, **fields)
    except Exception:
        _discard_image(image)
        raise

    if image is not None and previous_image:
        _upload_storage().delete(previous_image)

    return jsonify(show.to_dict())


@shows_bp.route("/<int:show_id>", methods=["DELETE"])
def delete_show(show_id: int):
    image = _get_show_or_404(show_id).image
    get_record_store().delete_show(show_id)
    if image:
        _upload_storage().delete(image)
    return "", 204
