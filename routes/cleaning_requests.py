"""
Cleaning request API routes for TidyUp (customer side).
Submission, the customer's plan of their own requests, edits, deletion,
and rating the cleaner once a job is completed.
"""

import logging

from flask import Blueprint, request, jsonify, current_app

from models import db, CleaningRequest, User, DEFAULT_NOTES
from auth_routes import require_auth
from errors import ValidationError, Forbidden, Conflict, NotFound
from lifecycle import (
    PENDING, COMPLETED, TERMINAL_STATUSES, get_request, normalize_status, rate,
)
from sanitize import clean_text
from socket_events import (
    broadcast_profile_update, broadcast_request_new, broadcast_request_removed,
    broadcast_request_status,
)
from validators import validate_schedule

logger = logging.getLogger(__name__)

cleaning_requests_bp = Blueprint("cleaning_requests", __name__)

MAX_LOCATION_LENGTH = 500
MAX_NOTES_LENGTH = 2000


def _owned_request(request_id, session):
    """Load a request and make sure the caller owns it."""
    cleaning_request = get_request(request_id)
    if cleaning_request.user_id != session.user_id:
        logger.info("User %s tried to manage request %s owned by %s",
                    session.user_id, request_id, cleaning_request.user_id)
        raise Forbidden("You can only manage your own requests.", code="not_owner")
    return cleaning_request


# ---------------------------------------------------------------------------
# POST /api/requests
# ---------------------------------------------------------------------------
@cleaning_requests_bp.route("/api/requests", methods=["POST"])
@require_auth
def submit_request(session):
    """Create a new pending cleaning request for the caller.

    Body JSON:
        location (str, required)
        date     (str, required) - YYYY-MM-DD
        time     (str, required) - hh:mm AM/PM
        notes    (str, optional)
    """
    data = request.get_json(silent=True) or {}
    location = clean_text(data.get("location"), MAX_LOCATION_LENGTH)
    date_value = clean_text(data.get("date"))
    time_value = clean_text(data.get("time"))
    notes = clean_text(data.get("notes", data.get("additionalNotes")), MAX_NOTES_LENGTH)

    if not location or not date_value or not time_value:
        raise ValidationError("Please fill out all required fields.", code="missing_fields")

    day, clock = validate_schedule(date_value, time_value, current_app.config["TIMEZONE"])

    cleaning_request = CleaningRequest(
        user_id=session.user_id,
        user_email=session.email,
        location=location,
        date=day,
        time=clock,
        additional_notes=notes or DEFAULT_NOTES,
        status=PENDING,
    )
    db.session.add(cleaning_request)
    db.session.commit()
    logger.info("Request %s submitted by %s for %s %s",
                cleaning_request.id, session.user_id, day, clock)

    broadcast_request_new(cleaning_request)

    return jsonify({"success": True, "request": cleaning_request.to_dict()}), 201


# ---------------------------------------------------------------------------
# GET /api/requests
# ---------------------------------------------------------------------------
@cleaning_requests_bp.route("/api/requests", methods=["GET"])
@require_auth
def list_my_requests(session):
    """The caller's own requests, newest first. Optional ?status= filter."""
    query = CleaningRequest.query.filter_by(user_id=session.user_id)

    status_filter = request.args.get("status")
    if status_filter:
        status = normalize_status(status_filter)
        if status is None:
            raise ValidationError("Unknown status '{}'.".format(status_filter), code="invalid_status")
        query = query.filter_by(status=status)

    requests_list = query.order_by(CleaningRequest.created_at.desc()).all()
    return jsonify({
        "success": True,
        "requests": [r.to_dict() for r in requests_list],
        "count": len(requests_list),
    })


# ---------------------------------------------------------------------------
# PUT /api/requests/<request_id>
# ---------------------------------------------------------------------------
@cleaning_requests_bp.route("/api/requests/<request_id>", methods=["PUT"])
@require_auth
def edit_request(request_id, session):
    """Change the location, date and time of one of the caller's requests."""
    cleaning_request = _owned_request(request_id, session)

    data = request.get_json(silent=True) or {}
    location = clean_text(data.get("location"), MAX_LOCATION_LENGTH)
    date_value = clean_text(data.get("date"))
    time_value = clean_text(data.get("time"))

    if not location:
        raise ValidationError("Location cannot be empty.", code="missing_location")
    if not date_value or not time_value:
        raise ValidationError("Please fill out all required fields.", code="missing_fields")

    day, clock = validate_schedule(date_value, time_value, current_app.config["TIMEZONE"])

    if normalize_status(cleaning_request.status) in TERMINAL_STATUSES:
        raise Conflict("This request is {} and can no longer be edited.".format(cleaning_request.status),
                       code="request_closed")

    updated = (
        CleaningRequest.query
        .filter(
            CleaningRequest.id == cleaning_request.id,
            CleaningRequest.user_id == session.user_id,
            CleaningRequest.status.notin_(TERMINAL_STATUSES),
        )
        .update({"location": location, "date": day, "time": clock},
                synchronize_session=False)
    )
    if updated == 0:
        db.session.rollback()
        raise Conflict("This request was changed by someone else. Please refresh.")
    db.session.commit()
    db.session.refresh(cleaning_request)

    broadcast_request_status(cleaning_request)

    return jsonify({"success": True, "request": cleaning_request.to_dict()})


# ---------------------------------------------------------------------------
# DELETE /api/requests/<request_id>
# ---------------------------------------------------------------------------
@cleaning_requests_bp.route("/api/requests/<request_id>", methods=["DELETE"])
@require_auth
def delete_request(request_id, session):
    """Permanently delete one of the caller's requests."""
    cleaning_request = _owned_request(request_id, session)

    deleted = (
        CleaningRequest.query
        .filter_by(id=cleaning_request.id, user_id=session.user_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.session.rollback()
        raise NotFound("Request does not exist.")
    db.session.commit()
    logger.info("Request %s deleted by owner %s", request_id, session.user_id)

    broadcast_request_removed(request_id)

    return jsonify({"success": True, "id": request_id})


# ---------------------------------------------------------------------------
# POST /api/requests/<request_id>/rating
# ---------------------------------------------------------------------------
@cleaning_requests_bp.route("/api/requests/<request_id>/rating", methods=["POST"])
@require_auth
def rate_request(request_id, session):
    """Rate the cleaner of a completed request, 1 to 5 stars, exactly once."""
    cleaning_request = _owned_request(request_id, session)

    data = request.get_json(silent=True) or {}
    rating = data.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be a whole number from 1 to 5.", code="invalid_rating")

    if normalize_status(cleaning_request.status) != COMPLETED:
        raise Conflict("You can only rate a completed request.", code="not_completed")
    if cleaning_request.rating is not None:
        raise Conflict("This request has already been rated.", code="already_rated")
    if not cleaning_request.cleaner_id:
        raise Conflict("No cleaner is assigned to this request.", code="no_cleaner")

    cleaning_request, cleaner = rate(cleaning_request, rating)

    broadcast_profile_update(cleaner)
    broadcast_request_status(cleaning_request)

    return jsonify({
        "success": True,
        "request": cleaning_request.to_dict(),
        "cleaner": {
            "id": cleaner.id,
            "totalPoints": cleaner.total_points,
            "totalRatings": cleaner.total_ratings,
            "average": cleaner.average,
        },
    })


# ---------------------------------------------------------------------------
# GET /api/requests/<request_id>/cleaner
# ---------------------------------------------------------------------------
@cleaning_requests_bp.route("/api/requests/<request_id>/cleaner", methods=["GET"])
@require_auth
def get_request_cleaner(request_id, session):
    """Contact card of the cleaner assigned to one of the caller's requests."""
    cleaning_request = _owned_request(request_id, session)
    if not cleaning_request.cleaner_id:
        raise Conflict("No cleaner has accepted this request yet.", code="no_cleaner")

    cleaner = db.session.get(User, cleaning_request.cleaner_id)
    if cleaner is None:
        raise NotFound("Cleaner profile not found.")

    return jsonify({"success": True, "cleaner": cleaner.public_dict()})
