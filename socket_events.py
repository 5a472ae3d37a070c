"""
Socket.IO event handlers for TidyUp real-time features.
- Live profile updates to the profile owner
- New / claimed / removed requests pushed to every cleaner's feed
- Request status changes pushed to the customer who owns the request
"""

import logging

from flask_socketio import SocketIO, emit, join_room
from flask import request

from errors import NotAuthenticated, ProfileNotFound
from models import ROLE_ADMIN, ROLE_CLEANER

logger = logging.getLogger(__name__)

socketio = SocketIO()

CLEANERS_ROOM = "cleaners"
ADMIN_ROOM = "admin"


def user_room(user_id):
    return "user:{}".format(user_id)


@socketio.on("connect")
def handle_connect(auth=None):
    """Authenticate the socket with the same token the HTTP API uses.

    Clients connect with ``auth={"token": "<jwt>"}``. The socket joins its
    own user room, and cleaners also join the shared feed room.
    """
    from auth_routes import resolve_session

    token = (auth or {}).get("token") if isinstance(auth, dict) else None
    try:
        session = resolve_session(token)
    except (NotAuthenticated, ProfileNotFound) as exc:
        logger.info("Socket %s refused: %s", request.sid, exc.message)
        return False

    join_room(user_room(session.user_id))
    if session.role == ROLE_CLEANER:
        join_room(CLEANERS_ROOM)
    elif session.role == ROLE_ADMIN:
        join_room(ADMIN_ROOM)

    logger.debug("Socket %s connected for user %s", request.sid, session.user_id)
    emit("connected", {"userId": session.user_id, "role": session.role})


@socketio.on("disconnect")
def handle_disconnect():
    logger.debug("Socket %s disconnected", request.sid)


def broadcast_profile_update(user):
    """Push the user's current profile to every socket they have open."""
    socketio.emit("profile:updated", user.to_dict(), room=user_room(user.id))


def broadcast_request_new(cleaning_request):
    socketio.emit("request:new", cleaning_request.to_dict(), room=CLEANERS_ROOM)


def broadcast_request_claimed(cleaning_request):
    """A request left the pending pool; feeds drop it immediately."""
    payload = {"id": cleaning_request.id, "cleanerId": cleaning_request.cleaner_id}
    socketio.emit("request:claimed", payload, room=CLEANERS_ROOM)
    broadcast_request_status(cleaning_request)


def broadcast_request_status(cleaning_request):
    payload = cleaning_request.to_dict()
    socketio.emit("request:status", payload, room=user_room(cleaning_request.user_id))
    if cleaning_request.cleaner_id:
        socketio.emit("request:status", payload, room=user_room(cleaning_request.cleaner_id))
    socketio.emit("request:status", payload, room=ADMIN_ROOM)


def broadcast_request_removed(request_id):
    """A request was deleted or rejected and must vanish from every feed."""
    socketio.emit("request:removed", {"id": request_id}, room=CLEANERS_ROOM)
    socketio.emit("request:removed", {"id": request_id}, room=ADMIN_ROOM)
