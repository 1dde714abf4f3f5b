"""Read-only serving of the uploads directory."""

from flask import Blueprint, current_app, send_from_directory

uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.route("/<path:filename>", methods=["GET"])
def serve_upload(filename: str):
    # send_from_directory rejects paths that leave the directory with a 404.
    return send_from_directory(current_app.config["UPLOAD_DIR"], filename)
