"""
Profile API routes for TidyUp.
Name, profile picture upload, saved location, and serving uploaded images.
"""

import os
import logging

from flask import Blueprint, request, jsonify, send_from_directory, current_app
from werkzeug.utils import secure_filename

from models import db, User, generate_uuid
from auth_routes import require_auth
from errors import ValidationError, ProfileNotFound, NotFound
from sanitize import clean_text
from socket_events import broadcast_profile_update

logger = logging.getLogger(__name__)

profile_bp = Blueprint("profile", __name__)


def _allowed_file(filename):
    """Check if a filename has an allowed extension."""
    return ("." in filename
            and filename.rsplit(".", 1)[1].lower() in current_app.config["ALLOWED_EXTENSIONS"])


def _upload_folder():
    """Return the uploads directory, creating it if it does not exist."""
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def _current_user(session):
    user = db.session.get(User, session.user_id)
    if user is None:
        raise ProfileNotFound("User profile not found.")
    return user


def _saved(user):
    db.session.commit()
    broadcast_profile_update(user)
    return jsonify({"success": True, "user": user.to_dict()})


# ---------------------------------------------------------------------------
# GET / PUT /api/profile
# ---------------------------------------------------------------------------
@profile_bp.route("/api/profile", methods=["GET"])
@require_auth
def get_profile(session):
    return jsonify({"success": True, "user": _current_user(session).to_dict()})


@profile_bp.route("/api/profile", methods=["PUT"])
@require_auth
def update_profile(session):
    """Update the caller's display name."""
    user = _current_user(session)
    data = request.get_json(silent=True) or {}

    full_name = clean_text(data.get("fullName"), 255)
    if not full_name:
        raise ValidationError("Full name cannot be empty.", code="missing_name")

    user.full_name = full_name
    return _saved(user)


# ---------------------------------------------------------------------------
# POST /api/profile/picture  (multipart/form-data, field "file")
# ---------------------------------------------------------------------------
@profile_bp.route("/api/profile/picture", methods=["POST"])
@require_auth
def upload_profile_picture(session):
    """
    Replace the caller's profile picture.

    Constraints:
        - Max 10 MB
        - Allowed types: jpg, jpeg, png, webp
    Returns: { success, url, user }
    """
    user = _current_user(session)

    file = request.files.get("file")
    if not file or not file.filename:
        raise ValidationError("No file provided. Use the 'file' form field.", code="missing_file")

    if not _allowed_file(file.filename):
        raise ValidationError("File type not allowed. Accepted: jpg, png, webp", code="invalid_file_type")

    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(0)
    if size > current_app.config["MAX_PICTURE_SIZE"]:
        raise ValidationError("File exceeds maximum size of 10 MB", code="file_too_large")

    ext = file.filename.rsplit(".", 1)[1].lower()
    safe_name = secure_filename("{}.{}".format(generate_uuid(), ext))
    file.save(os.path.join(_upload_folder(), safe_name))

    old_url = user.profile_picture_url
    user.profile_picture_url = "/uploads/{}".format(safe_name)
    response = _saved(user)

    if old_url and old_url.startswith("/uploads/"):
        old_path = os.path.join(_upload_folder(), secure_filename(old_url.rsplit("/", 1)[1]))
        try:
            os.remove(old_path)
        except OSError:
            logger.warning("Could not remove old profile picture %s", old_path)

    logger.info("Profile picture updated for %s", user.id)
    return response


# ---------------------------------------------------------------------------
# PUT /api/profile/location
# ---------------------------------------------------------------------------
@profile_bp.route("/api/profile/location", methods=["PUT"])
@require_auth
def update_location(session):
    """Save the caller's home location: free-text address plus optional coordinates."""
    user = _current_user(session)
    data = request.get_json(silent=True) or {}

    address = clean_text(data.get("address"), 500)
    if not address:
        raise ValidationError("Address cannot be empty.", code="missing_address")

    location = {"address": address, "latitude": None, "longitude": None}
    for key, bound in (("latitude", 90), ("longitude", 180)):
        value = data.get(key)
        if value is None:
            continue
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValidationError("{} must be a number.".format(key.capitalize()), code="invalid_coordinates")
        if not -bound <= value <= bound:
            raise ValidationError("{} is out of range.".format(key.capitalize()), code="invalid_coordinates")
        location[key] = value

    user.location = location
    return _saved(user)


# ---------------------------------------------------------------------------
# GET /uploads/<filename>  (public)
# ---------------------------------------------------------------------------
@profile_bp.route("/uploads/<filename>", methods=["GET"])
def serve_upload(filename):
    """Serve a previously uploaded file."""
    safe_name = secure_filename(filename)
    folder = current_app.config["UPLOAD_FOLDER"]
    if not safe_name or not os.path.exists(os.path.join(folder, safe_name)):
        raise NotFound("File not found.")
    return send_from_directory(folder, safe_name)
