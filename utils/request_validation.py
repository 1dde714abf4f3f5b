"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is malformed or missing.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    return _check_fields(data, required_keys, allow_empty)


def parse_request_fields(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return fields from a JSON body or, for form posts, from the form data."""

    if req.is_json:
        return parse_json_request(
            req, required_keys=required_keys, allow_empty=allow_empty
        )

    if req.mimetype in {"multipart/form-data", "application/x-www-form-urlencoded"}:
        data = req.form.to_dict()
        # A file counts as content for the emptiness check.
        if not data and req.files:
            allow_empty = True
        return _check_fields(data, required_keys, allow_empty)

    raise BadRequest(
        "Request content type must be application/json or multipart/form-data."
    )


def parse_datetime(value: object, field: str) -> datetime | None:
    """Parse an ISO 8601 string, treating empty values as None."""

    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise BadRequest(f"{field} must be an ISO 8601 string.")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise BadRequest(f"{field} must be ISO 8601 format.") from exc
    # Stored naive, in UTC.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _check_fields(
    data: dict, required_keys: Iterable[str] | None, allow_empty: bool
) -> dict:
    if not data and not allow_empty:
        raise BadRequest("Request body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(", ".join(sorted(missing)))
            )

    return data
