"""
Cleaner application API routes for TidyUp.
Customers apply to become cleaners; admins review the queue in routes/admin.py.
"""

import logging

from flask import Blueprint, jsonify

from models import (
    db, User, CleanerApplication, ROLE_USER, APPLICATION_PENDING,
)
from auth_routes import require_auth
from errors import Conflict, ProfileNotFound, NotFound

logger = logging.getLogger(__name__)

cleaner_applications_bp = Blueprint("cleaner_applications", __name__)


# ---------------------------------------------------------------------------
# POST /api/cleaner-applications
# ---------------------------------------------------------------------------
@cleaner_applications_bp.route("/api/cleaner-applications", methods=["POST"])
@require_auth
def submit_cleaner_application(session):
    """Apply to become a cleaner using the caller's current profile."""
    user = db.session.get(User, session.user_id)
    if user is None:
        raise ProfileNotFound("User profile not found.")

    if user.role != ROLE_USER:
        raise Conflict("Your account already has the {} role.".format(user.role), code="already_cleaner")

    pending = CleanerApplication.query.filter_by(
        user_id=user.id, status=APPLICATION_PENDING
    ).first()
    if pending:
        raise Conflict("You already have an application under review.", code="application_pending")

    application = CleanerApplication(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        profile_picture_url=user.profile_picture_url,
        status=APPLICATION_PENDING,
    )
    db.session.add(application)
    db.session.commit()
    logger.info("Cleaner application %s submitted by %s", application.id, user.email)

    return jsonify({"success": True, "application": application.to_dict()}), 201


# ---------------------------------------------------------------------------
# GET /api/cleaner-applications/mine
# ---------------------------------------------------------------------------
@cleaner_applications_bp.route("/api/cleaner-applications/mine", methods=["GET"])
@require_auth
def get_my_application(session):
    application = (
        CleanerApplication.query
        .filter_by(user_id=session.user_id)
        .order_by(CleanerApplication.applied_at.desc())
        .first()
    )
    if application is None:
        raise NotFound("You have not applied to become a cleaner.")
    return jsonify({"success": True, "application": application.to_dict()})
