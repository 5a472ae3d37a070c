"""
Authentication Routes for TidyUp Backend
Handles email/password sign-up, verification, role-gated login, and the
session decorators every other blueprint builds on.
"""

from flask import Blueprint, request, jsonify, current_app, g
import jwt
import datetime
import logging
from dataclasses import dataclass, field
from functools import wraps

from models import db, User, ROLE_ADMIN, ROLE_CLEANER, ROLE_USER, utcnow
from errors import ValidationError, NotAuthenticated, Forbidden, NotFound, Conflict, ProfileNotFound
from validators import validate_email, validate_password
from extensions import limiter

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

PURPOSE_SESSION = 'session'
PURPOSE_VERIFY_EMAIL = 'verify_email'
PURPOSE_RESET_PASSWORD = 'reset_password'


@dataclass(frozen=True)
class Session:
    """Who is calling. Built once per request from the token and the user row."""
    user_id: str
    email: str
    email_verified: bool
    role: str
    claims: dict = field(default_factory=dict)

    @property
    def is_admin(self):
        return bool(self.claims.get('admin'))


# MARK: - Token Helpers

def _encode(payload, lifetime):
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = dict(payload, iat=now, exp=now + lifetime)
    return jwt.encode(payload, current_app.config['JWT_SECRET'],
                      algorithm=current_app.config['JWT_ALGORITHM'])


def generate_token(user):
    """Generate a session JWT carrying the user's role and custom claims"""
    return _encode({
        'user_id': user.id,
        'email': user.email,
        'role': user.role,
        'claims': dict(user.custom_claims or {}),
        'ver': user.token_version,
        'purpose': PURPOSE_SESSION,
    }, datetime.timedelta(days=current_app.config['JWT_EXPIRY_DAYS']))


def generate_email_token(user, purpose):
    """Single-purpose token mailed for email verification or password reset"""
    if purpose == PURPOSE_RESET_PASSWORD:
        lifetime = current_app.config['PASSWORD_RESET_EXPIRY']
    else:
        lifetime = current_app.config['EMAIL_TOKEN_EXPIRY']
    return _encode({
        'user_id': user.id,
        'ver': user.token_version,
        'purpose': purpose,
    }, lifetime)


def decode_token(token, purpose=PURPOSE_SESSION):
    """Verify a JWT and return its payload, or None when it is unusable"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'],
                             algorithms=[current_app.config['JWT_ALGORITHM']])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get('purpose') != purpose or not payload.get('user_id'):
        return None
    return payload


def resolve_session(token):
    """Turn a bearer token into a Session.

    Raises NotAuthenticated for a missing, invalid, expired, or revoked token
    and ProfileNotFound when the token is fine but the account is gone.
    """
    payload = decode_token(token)
    if payload is None:
        raise NotAuthenticated('Please log in to continue.')

    user = db.session.get(User, payload['user_id'])
    if user is None:
        raise ProfileNotFound('User profile not found.')
    if payload.get('ver') != user.token_version:
        raise NotAuthenticated('Your session has ended. Please log in again.')

    return Session(
        user_id=user.id,
        email=user.email,
        email_verified=user.email_verified,
        role=user.role,
        claims=dict(payload.get('claims') or {}),
    )


def bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return None


# MARK: - Decorators

def require_auth(f):
    """Decorator to require authentication; passes ``session`` to the view"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        session = resolve_session(bearer_token())
        g.session = session
        return f(*args, session=session, **kwargs)
    return decorated_function


def require_role(*roles):
    """Decorator factory restricting a view to the given roles"""
    def decorator(f):
        @wraps(f)
        @require_auth
        def decorated_function(*args, session=None, **kwargs):
            if session.role not in roles:
                logger.info("User %s with role %s denied access to %s",
                            session.user_id, session.role, request.path)
                raise Forbidden('You do not have permission to perform this action.')
            return f(*args, session=session, **kwargs)
        return decorated_function
    return decorator


require_admin = require_role(ROLE_ADMIN)
require_cleaner = require_role(ROLE_CLEANER)


def require_admin_claim(f):
    """Stronger admin gate: the session token itself must carry the admin claim"""
    @wraps(f)
    @require_auth
    def decorated_function(*args, session=None, **kwargs):
        if session.role != ROLE_ADMIN or not session.is_admin:
            raise Forbidden('Admin access required.')
        return f(*args, session=session, **kwargs)
    return decorated_function


# MARK: - Helpers

def _credentials():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    if not email or not password:
        raise ValidationError('Please enter both email and password.')
    return email, password


def _check_credentials(email, password):
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.info("Failed login attempt for %s", email)
        raise NotAuthenticated('Invalid email or password.', code='invalid_credentials')
    return user


def _authenticate():
    """Shared first step of every login flavour.

    The verification flag is re-read from the database so a link clicked in
    another tab counts immediately.
    """
    user = _check_credentials(*_credentials())
    db.session.refresh(user)
    if not user.email_verified:
        raise Forbidden('Please check your email and verify your account before logging in.',
                        code='email_not_verified')
    return user


def _session_response(user, token=None):
    token = token or generate_token(user)
    return jsonify({
        'success': True,
        'token': token,
        'user': user.to_dict(),
    })


def _send_verification(user):
    from notifications import send_verification_email
    token = generate_email_token(user, PURPOSE_VERIFY_EMAIL)
    send_verification_email(user.email, user.full_name, token)


# MARK: - Sign Up & Verification

@auth_bp.route('/signup', methods=['POST'])
@limiter.limit("5 per minute")
def signup():
    """Create a customer account and email a verification link"""
    data = request.get_json(silent=True) or {}
    full_name = (data.get('fullName') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    confirm_password = data.get('confirmPassword') or ''

    if not full_name or not email or not password or not confirm_password:
        raise ValidationError('Please fill out all required fields.')
    if password != confirm_password:
        raise ValidationError('Passwords do not match.', code='password_mismatch')
    if not validate_email(email):
        raise ValidationError('Please enter a valid email address.', code='invalid_email')
    valid, message = validate_password(password)
    if not valid:
        raise ValidationError(message, code='weak_password')

    if User.query.filter_by(email=email).first():
        raise Conflict('An account with this email already exists.', code='email_taken')

    user = User(
        full_name=full_name,
        email=email,
        role=ROLE_USER,
        status='unverified',
        total_points=0,
        total_ratings=0,
        average=0.0,
        custom_claims={},
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info("New account created for %s", email)

    _send_verification(user)

    return jsonify({
        'success': True,
        'message': 'Account created. Please check your email to verify your account.',
        'user': user.to_dict(),
    }), 201


@auth_bp.route('/verify-email', methods=['POST'])
def verify_email():
    """Mark the account in a verification token as verified"""
    data = request.get_json(silent=True) or {}
    payload = decode_token(data.get('token'), purpose=PURPOSE_VERIFY_EMAIL)
    if payload is None:
        raise ValidationError('This verification link is invalid or has expired.', code='invalid_token')

    user = db.session.get(User, payload['user_id'])
    if user is None:
        raise NotFound('Account not found.')

    if not user.email_verified:
        user.email_verified_at = utcnow()
        if user.status == 'unverified':
            user.status = 'active'
        db.session.commit()
        logger.info("Email verified for %s", user.email)

        from socket_events import broadcast_profile_update
        broadcast_profile_update(user)

    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/resend-verification', methods=['POST'])
@limiter.limit("3 per minute")
def resend_verification():
    """Send the verification email again"""
    user = _check_credentials(*_credentials())
    if user.email_verified:
        return jsonify({'success': True, 'alreadyVerified': True,
                        'message': 'Your email is already verified.'})

    _send_verification(user)
    return jsonify({'success': True, 'alreadyVerified': False,
                    'message': 'Verification email sent. Please check your inbox.'})


# MARK: - Login

@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Customer login with email and password"""
    return _session_response(_authenticate())


@auth_bp.route('/login/cleaner', methods=['POST'])
@limiter.limit("10 per minute")
def login_cleaner():
    """Login for the cleaner app; the account must hold the cleaner role"""
    user = _authenticate()
    if user.role != ROLE_CLEANER:
        raise Forbidden('This account is not registered as a cleaner.', code='not_a_cleaner')
    return _session_response(user)


@auth_bp.route('/login/admin', methods=['POST'])
@limiter.limit("10 per minute")
def login_admin():
    """Login for the admin dashboard; the issued token must carry the admin claim"""
    user = _authenticate()
    token = generate_token(user)
    claims = decode_token(token).get('claims') or {}
    if not claims.get('admin'):
        logger.warning("Admin login refused for %s: no admin claim", user.email)
        raise Forbidden('This account does not have admin access.', code='not_an_admin')
    return _session_response(user, token)


@auth_bp.route('/logout', methods=['POST'])
@require_auth
def logout(session):
    """Invalidate every token issued to the caller"""
    User.query.filter_by(id=session.user_id).update(
        {User.token_version: User.token_version + 1}, synchronize_session=False
    )
    db.session.commit()
    return jsonify({'success': True})


# MARK: - Password Reset

@auth_bp.route('/forgot-password', methods=['POST'])
@limiter.limit("3 per minute")
def forgot_password():
    """Request a password reset link. Always answers the same way."""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    if not email:
        raise ValidationError('Email is required.')

    user = User.query.filter_by(email=email).first()
    if user:
        from notifications import send_password_reset_email
        token = generate_email_token(user, PURPOSE_RESET_PASSWORD)
        send_password_reset_email(user.email, token, user.full_name)
    else:
        logger.info("Password reset requested for unknown email %s", email)

    return jsonify({
        'success': True,
        'message': 'If an account exists for that email, a reset link has been sent.',
    })


@auth_bp.route('/reset-password', methods=['POST'])
@limiter.limit("5 per minute")
def reset_password():
    """Set a new password from a reset token; the token works once"""
    data = request.get_json(silent=True) or {}
    password = data.get('password') or ''
    payload = decode_token(data.get('token'), purpose=PURPOSE_RESET_PASSWORD)
    if payload is None:
        raise ValidationError('This reset link is invalid or has expired.', code='invalid_token')

    valid, message = validate_password(password)
    if not valid:
        raise ValidationError(message, code='weak_password')

    user = db.session.get(User, payload['user_id'])
    if user is None or payload.get('ver') != user.token_version:
        raise ValidationError('This reset link is invalid or has expired.', code='invalid_token')

    user.set_password(password)
    user.token_version = user.token_version + 1
    db.session.commit()
    logger.info("Password reset for %s", user.email)

    return jsonify({'success': True, 'message': 'Your password has been reset. Please log in.'})


# MARK: - Current User

@auth_bp.route('/me', methods=['GET'])
@require_auth
def get_current_user(session):
    user = db.session.get(User, session.user_id)
    return jsonify({
        'success': True,
        'session': {
            'userId': session.user_id,
            'email': session.email,
            'emailVerified': session.email_verified,
            'role': session.role,
            'claims': session.claims,
        },
        'user': user.to_dict(),
    })
