"""
Cleaner feed API routes for TidyUp.
Browse open requests, claim one, and move claimed tasks through
confirmation and completion.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db, CleaningRequest, User
from auth_routes import require_cleaner
from errors import Forbidden, ValidationError
from lifecycle import (
    PENDING, CONFIRMED, COMPLETED, accept, get_request, normalize_status, release, transition,
)
from notifications import send_request_status_email
from socket_events import (
    broadcast_request_claimed, broadcast_request_new, broadcast_request_status,
)

logger = logging.getLogger(__name__)

feed_bp = Blueprint("feed", __name__)


def _notify_owner(cleaning_request, cleaner_name=None):
    owner = db.session.get(User, cleaning_request.user_id)
    if owner:
        send_request_status_email(owner.email, owner.full_name, cleaning_request, cleaner_name)


def _assigned_task(request_id, session):
    cleaning_request = get_request(request_id)
    if cleaning_request.cleaner_id != session.user_id:
        raise Forbidden("This task is not assigned to you.", code="not_assignee")
    return cleaning_request


# ---------------------------------------------------------------------------
# GET /api/feed
# ---------------------------------------------------------------------------
@feed_bp.route("/api/feed", methods=["GET"])
@require_cleaner
def get_feed(session):
    """All pending requests, newest first."""
    pending = (
        CleaningRequest.query
        .filter_by(status=PENDING)
        .order_by(CleaningRequest.created_at.desc())
        .all()
    )
    return jsonify({
        "success": True,
        "requests": [r.to_dict() for r in pending],
        "count": len(pending),
    })


# ---------------------------------------------------------------------------
# POST /api/feed/<request_id>/accept
# ---------------------------------------------------------------------------
@feed_bp.route("/api/feed/<request_id>/accept", methods=["POST"])
@require_cleaner
def accept_request(request_id, session):
    """Claim a pending request. When two cleaners race, one gets a conflict."""
    cleaning_request = get_request(request_id)

    if cleaning_request.user_id == session.user_id:
        raise Forbidden("You cannot accept your own request.", code="own_request")

    cleaning_request = accept(cleaning_request, session.user_id, session.email)

    broadcast_request_claimed(cleaning_request)
    cleaner = db.session.get(User, session.user_id)
    _notify_owner(cleaning_request, cleaner.full_name if cleaner else None)

    return jsonify({"success": True, "request": cleaning_request.to_dict()})


# ---------------------------------------------------------------------------
# GET /api/feed/tasks
# ---------------------------------------------------------------------------
@feed_bp.route("/api/feed/tasks", methods=["GET"])
@require_cleaner
def get_my_tasks(session):
    """Requests assigned to the calling cleaner. Optional ?status= filter."""
    query = CleaningRequest.query.filter_by(cleaner_id=session.user_id)

    status_filter = request.args.get("status")
    if status_filter:
        status = normalize_status(status_filter)
        if status is None:
            raise ValidationError("Unknown status '{}'.".format(status_filter), code="invalid_status")
        query = query.filter_by(status=status)

    tasks = query.order_by(CleaningRequest.created_at.desc()).all()
    return jsonify({
        "success": True,
        "tasks": [t.to_dict() for t in tasks],
        "count": len(tasks),
    })


# ---------------------------------------------------------------------------
# POST /api/feed/tasks/<request_id>/cancel
# ---------------------------------------------------------------------------
@feed_bp.route("/api/feed/tasks/<request_id>/cancel", methods=["POST"])
@require_cleaner
def cancel_task(request_id, session):
    """Give an accepted task back to the pool of pending requests."""
    cleaning_request = _assigned_task(request_id, session)

    cleaning_request = release(cleaning_request)
    logger.info("Cleaner %s released request %s", session.user_id, request_id)

    broadcast_request_status(cleaning_request)
    broadcast_request_new(cleaning_request)
    _notify_owner(cleaning_request)

    return jsonify({"success": True, "request": cleaning_request.to_dict()})


# ---------------------------------------------------------------------------
# POST /api/feed/tasks/<request_id>/confirm
# POST /api/feed/tasks/<request_id>/complete
# ---------------------------------------------------------------------------
@feed_bp.route("/api/feed/tasks/<request_id>/confirm", methods=["POST"])
@require_cleaner
def confirm_task(request_id, session):
    return _advance(request_id, session, CONFIRMED)


@feed_bp.route("/api/feed/tasks/<request_id>/complete", methods=["POST"])
@require_cleaner
def complete_task(request_id, session):
    return _advance(request_id, session, COMPLETED)


def _advance(request_id, session, new_status):
    cleaning_request = _assigned_task(request_id, session)
    cleaning_request = transition(cleaning_request, new_status)

    broadcast_request_status(cleaning_request)
    cleaner = db.session.get(User, session.user_id)
    _notify_owner(cleaning_request, cleaner.full_name if cleaner else None)

    return jsonify({"success": True, "request": cleaning_request.to_dict()})
