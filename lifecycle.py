"""
Cleaning request lifecycle.

Statuses form a closed set and only move along VALID_STATUS_TRANSITIONS.
Every status write is a single conditional UPDATE on the status that was
read, so two clients racing on the same request cannot both win.
"""

import logging

from models import db, CleaningRequest, User, utcnow
from errors import Conflict, InvalidTransition, NotFound

logger = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"
CONFIRMED = "Confirmed"
COMPLETED = "Completed"
REJECTED = "Rejected"

REQUEST_STATUSES = (PENDING, ACCEPTED, CONFIRMED, COMPLETED, REJECTED)
TERMINAL_STATUSES = (COMPLETED, REJECTED)

VALID_STATUS_TRANSITIONS = {
    PENDING: [ACCEPTED, REJECTED],
    ACCEPTED: [CONFIRMED, PENDING],
    CONFIRMED: [COMPLETED],
}

_CANONICAL = {status.lower(): status for status in REQUEST_STATUSES}


def normalize_status(value):
    """Map any casing of a known status onto its canonical value, else None."""
    if not isinstance(value, str):
        return None
    return _CANONICAL.get(value.strip().lower())


def can_transition(current, new):
    current = normalize_status(current)
    return normalize_status(new) in VALID_STATUS_TRANSITIONS.get(current, [])


def get_request(request_id):
    cleaning_request = db.session.get(CleaningRequest, request_id)
    if not cleaning_request:
        raise NotFound("Request does not exist.")
    return cleaning_request


def transition(cleaning_request, new_status, conflict_message=None, **values):
    """Move ``cleaning_request`` to ``new_status`` and commit.

    Extra keyword arguments are column values written in the same UPDATE
    (e.g. ``cleaner_id``). Raises InvalidTransition when the table forbids
    the move and Conflict when the row changed since it was read.
    """
    current = normalize_status(cleaning_request.status)
    new_status = normalize_status(new_status)
    if new_status is None or not can_transition(current, new_status):
        raise InvalidTransition(cleaning_request.status, new_status)

    values.update(status=new_status, updated_at=utcnow())
    updated = (
        CleaningRequest.query
        .filter_by(id=cleaning_request.id, status=cleaning_request.status,
                   cleaner_id=cleaning_request.cleaner_id)
        .update(values, synchronize_session=False)
    )
    if updated == 0:
        db.session.rollback()
        raise Conflict(conflict_message or "This request was changed by someone else. Please refresh.")

    db.session.commit()
    db.session.refresh(cleaning_request)
    logger.info("Request %s moved %s -> %s", cleaning_request.id, current, new_status)
    return cleaning_request


def accept(cleaning_request, cleaner_id, cleaner_email):
    """Claim a pending request for a cleaner. Only one claim can succeed."""
    if normalize_status(cleaning_request.status) in TERMINAL_STATUSES:
        raise Conflict("This request is no longer available.", code="request_closed")
    if cleaning_request.status != PENDING or cleaning_request.cleaner_id is not None:
        raise Conflict("This request has already been accepted.", code="already_accepted")

    updated = (
        CleaningRequest.query
        .filter(
            CleaningRequest.id == cleaning_request.id,
            CleaningRequest.status == PENDING,
            CleaningRequest.cleaner_id.is_(None),
        )
        .update({
            "status": ACCEPTED,
            "cleaner_id": cleaner_id,
            "cleaner_email": cleaner_email,
            "updated_at": utcnow(),
        }, synchronize_session=False)
    )
    if updated == 0:
        db.session.rollback()
        raise Conflict("This request has already been accepted.", code="already_accepted")

    db.session.commit()
    db.session.refresh(cleaning_request)
    logger.info("Request %s accepted by cleaner %s", cleaning_request.id, cleaner_id)
    return cleaning_request


def release(cleaning_request):
    """Cleaner gives an accepted task back to the pending pool."""
    return transition(
        cleaning_request, PENDING,
        conflict_message="This task can no longer be cancelled.",
        cleaner_id=None, cleaner_email=None,
    )


def rate(cleaning_request, rating):
    """Record a rating once and fold it into the cleaner's aggregate.

    The request write and both aggregate writes share one transaction; the
    average is computed by the database from the post-increment totals.
    """
    updated = (
        CleaningRequest.query
        .filter(
            CleaningRequest.id == cleaning_request.id,
            CleaningRequest.status == COMPLETED,
            CleaningRequest.rating.is_(None),
        )
        .update({"rating": rating, "updated_at": utcnow()}, synchronize_session=False)
    )
    if updated == 0:
        db.session.rollback()
        raise Conflict("This request has already been rated.", code="already_rated")

    cleaner_updated = (
        User.query
        .filter_by(id=cleaning_request.cleaner_id)
        .update({
            User.total_points: User.total_points + rating,
            User.total_ratings: User.total_ratings + 1,
        }, synchronize_session=False)
    )
    if cleaner_updated == 0:
        db.session.rollback()
        raise NotFound("Cleaner profile not found.")

    (
        User.query
        .filter_by(id=cleaning_request.cleaner_id)
        .update({User.average: User.total_points * 1.0 / User.total_ratings},
                synchronize_session=False)
    )
    db.session.commit()

    db.session.refresh(cleaning_request)
    cleaner = db.session.get(User, cleaning_request.cleaner_id)
    db.session.refresh(cleaner)
    logger.info("Request %s rated %s; cleaner %s now %.2f over %d ratings",
                cleaning_request.id, rating, cleaner.id, cleaner.average, cleaner.total_ratings)
    return cleaning_request, cleaner
