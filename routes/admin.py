"""
Admin API routes for TidyUp.
Protected by role-based access (admin only); changing roles additionally
needs the admin claim on the caller's token.
"""

import logging

from flask import Blueprint, request, jsonify, current_app

from models import (
    db, User, CleanerApplication, ROLES, ROLE_ADMIN, ROLE_CLEANER,
    APPLICATION_APPROVED, APPLICATION_REJECTED, utcnow,
)
from auth_routes import require_admin, require_admin_claim
from errors import ValidationError, Forbidden, NotFound, Conflict
from lifecycle import PENDING, ACCEPTED, REJECTED, get_request, normalize_status, release, transition
from notifications import send_application_decision_email, send_request_status_email
from socket_events import (
    broadcast_profile_update, broadcast_request_new, broadcast_request_removed,
    broadcast_request_status,
)

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _page_args():
    page = max(request.args.get("page", 1, type=int), 1)
    per_page = request.args.get("per_page", current_app.config["ITEMS_PER_PAGE"], type=int)
    per_page = min(max(per_page, 1), current_app.config["MAX_ITEMS_PER_PAGE"])
    return page, per_page


# ---------------------------------------------------------------------------
# Cleaner applications
# ---------------------------------------------------------------------------
@admin_bp.route("/cleaner-applications", methods=["GET"])
@require_admin
def list_cleaner_applications(session):
    """List every cleaner application, newest first. Optional ?status= filter."""
    query = CleanerApplication.query

    status_filter = request.args.get("status")
    if status_filter:
        query = query.filter_by(status=status_filter)

    page, per_page = _page_args()
    pagination = query.order_by(
        CleanerApplication.applied_at.desc()
    ).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        "success": True,
        "applications": [a.to_dict() for a in pagination.items],
        "total": pagination.total,
        "page": pagination.page,
        "pages": pagination.pages,
    })


@admin_bp.route("/cleaner-applications/<app_id>/review", methods=["PUT"])
@require_admin
def review_cleaner_application(app_id, session):
    """Approve or reject a cleaner application.

    Body JSON:
        action (str, required) - "approve" or "reject"

    Approval writes the application status and the applicant's role in one
    transaction. Rejection leaves the role alone.
    """
    application = db.session.get(CleanerApplication, app_id)
    if not application:
        raise NotFound("Application not found.")

    data = request.get_json(silent=True) or {}
    action = (data.get("action") or "").strip().lower()
    if action not in ("approve", "reject"):
        raise ValidationError("action must be 'approve' or 'reject'", code="invalid_action")

    new_status = APPLICATION_APPROVED if action == "approve" else APPLICATION_REJECTED
    updated = (
        CleanerApplication.query
        .filter(CleanerApplication.id == app_id, CleanerApplication.status != new_status)
        .update({
            "status": new_status,
            "reviewed_at": utcnow(),
            "reviewed_by": session.user_id,
        }, synchronize_session=False)
    )
    if updated == 0:
        db.session.rollback()
        raise Conflict("This application is already {}.".format(new_status), code="already_reviewed")

    user = db.session.get(User, application.user_id)
    if user is None:
        db.session.rollback()
        raise NotFound("Applicant account not found.")

    if action == "approve" and user.role != ROLE_ADMIN:
        user.role = ROLE_CLEANER

    db.session.commit()
    db.session.refresh(application)
    logger.info("Application %s %s by admin %s", app_id, new_status, session.user_id)

    broadcast_profile_update(user)
    send_application_decision_email(user.email, user.full_name, action == "approve")

    return jsonify({
        "success": True,
        "application": application.to_dict(),
        "user": user.to_dict(),
    })


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@admin_bp.route("/users", methods=["GET"])
@require_admin
def list_users(session):
    """Paginated user list. Optional ?role= filter."""
    query = User.query

    role_filter = request.args.get("role")
    if role_filter:
        if role_filter not in ROLES:
            raise ValidationError("Unknown role '{}'.".format(role_filter), code="invalid_role")
        query = query.filter_by(role=role_filter)

    page, per_page = _page_args()
    pagination = query.order_by(User.created_at.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )

    return jsonify({
        "success": True,
        "users": [u.to_dict() for u in pagination.items],
        "total": pagination.total,
        "page": pagination.page,
        "pages": pagination.pages,
    })


@admin_bp.route("/users/<target_id>/role", methods=["PUT"])
@require_admin_claim
def set_user_role(target_id, session):
    """Set a user's role directly and keep the admin claim in step with it."""
    data = request.get_json(silent=True) or {}
    role = (data.get("role") or "").strip().lower()
    if role not in ROLES:
        raise ValidationError("role must be one of: {}".format(", ".join(ROLES)), code="invalid_role")

    if target_id == session.user_id:
        raise Forbidden("You cannot change your own role.", code="own_role")

    user = db.session.get(User, target_id)
    if user is None:
        raise NotFound("User not found.")

    claims = dict(user.custom_claims or {})
    if role == ROLE_ADMIN:
        claims["admin"] = True
    else:
        claims.pop("admin", None)

    previous = user.role
    user.role = role
    user.custom_claims = claims
    db.session.commit()
    logger.info("Admin %s changed role of %s from %s to %s",
                session.user_id, user.email, previous, role)

    broadcast_profile_update(user)

    return jsonify({"success": True, "user": user.to_dict()})


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
@admin_bp.route("/requests/<request_id>/status", methods=["PUT"])
@require_admin
def set_request_status(request_id, session):
    """Move a request along the lifecycle, e.g. reject a pending request."""
    data = request.get_json(silent=True) or {}
    new_status = normalize_status(data.get("status"))
    if new_status is None:
        raise ValidationError("Unknown status '{}'.".format(data.get("status")), code="invalid_status")
    if new_status == ACCEPTED:
        raise ValidationError("Requests are accepted by cleaners from the feed.", code="invalid_status")

    cleaning_request = get_request(request_id)
    if new_status == PENDING:
        cleaning_request = release(cleaning_request)
        broadcast_request_new(cleaning_request)
    else:
        cleaning_request = transition(cleaning_request, new_status)
        if new_status == REJECTED:
            broadcast_request_removed(cleaning_request.id)

    broadcast_request_status(cleaning_request)
    owner = db.session.get(User, cleaning_request.user_id)
    if owner:
        send_request_status_email(owner.email, owner.full_name, cleaning_request)

    return jsonify({"success": True, "request": cleaning_request.to_dict()})
