"""
Email notification services for TidyUp, sent through Resend.

IMPORTANT: No function in this module should ever raise an exception.
All errors are caught and logged so that a notification failure never
takes down a sign-up or a request update.

Sending happens on a background thread so HTTP request handlers are never
blocked by network I/O to the email provider.
"""

import os
import logging
import threading

from email_templates import (
    verification_html,
    password_reset_html,
    application_decision_html,
    request_status_html,
)

logger = logging.getLogger(__name__)

RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
EMAIL_FROM = os.environ.get("EMAIL_FROM", "hello@tidyup.app")
EMAIL_FROM_NAME = os.environ.get("EMAIL_FROM_NAME", "TidyUp")


def _frontend_url(path, token):
    base = os.environ.get("FRONTEND_URL", "http://localhost:8081").rstrip("/")
    return "{}/{}?token={}".format(base, path, token)


def _send_email_resend(to_email, subject, html_content):
    """Send via the Resend API. Returns the response id or None."""
    try:
        import resend
        resend.api_key = RESEND_API_KEY

        response = resend.Emails.send({
            "from": "{} <{}>".format(EMAIL_FROM_NAME, EMAIL_FROM),
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        })
        logger.info("Email sent via Resend to %s (id: %s)", to_email, response.get("id"))
        return response.get("id")
    except Exception:
        logger.exception("Resend email failed for %s", to_email)
        return None


def send_email_sync(to_email, subject, html_content):
    """Send an email and wait for the provider. Never raises.

    With no RESEND_API_KEY configured the email is only logged.
    """
    try:
        if RESEND_API_KEY:
            return _send_email_resend(to_email, subject, html_content)

        logger.info("[DEV] Email to %s: %s", to_email, subject)
        return None
    except Exception:
        logger.exception("Failed to send email to %s", to_email)
        return None


def send_email(to_email, subject, html_content):
    """Send an email in a background thread. Returns immediately. Never raises."""
    try:
        thread = threading.Thread(
            target=send_email_sync,
            args=(to_email, subject, html_content),
            daemon=True,
        )
        thread.start()
        logger.debug("Email queued (async) to %s: %s", to_email, subject)
    except Exception:
        logger.exception("Failed to queue async email to %s", to_email)


# ---------------------------------------------------------------------------
# Account emails
# ---------------------------------------------------------------------------
def send_verification_email(to_email, full_name, token):
    """Email the sign-up verification link. Never raises."""
    try:
        url = _frontend_url("verify-email", token)
        return send_email(to_email, "Verify your TidyUp account", verification_html(full_name, url))
    except Exception:
        logger.exception("Failed in send_verification_email for %s", to_email)
        return None


def send_password_reset_email(to_email, token, full_name=None):
    """Email a password reset link. Never raises."""
    try:
        url = _frontend_url("reset-password", token)
        return send_email(to_email, "Reset your TidyUp password", password_reset_html(full_name, url))
    except Exception:
        logger.exception("Failed in send_password_reset_email for %s", to_email)
        return None


def send_application_decision_email(to_email, full_name, approved):
    """Tell an applicant the outcome of their cleaner application. Never raises."""
    try:
        subject = "Your TidyUp cleaner application"
        return send_email(to_email, subject, application_decision_html(full_name, approved))
    except Exception:
        logger.exception("Failed in send_application_decision_email for %s", to_email)
        return None


# ---------------------------------------------------------------------------
# Request emails
# ---------------------------------------------------------------------------
def send_request_status_email(to_email, full_name, cleaning_request, cleaner_name=None):
    """Tell a customer their request changed status. Never raises."""
    try:
        subject = "TidyUp request update: {}".format(cleaning_request.status)
        html = request_status_html(
            name=full_name,
            status=cleaning_request.status,
            location=cleaning_request.location,
            date=cleaning_request.date,
            time=cleaning_request.time,
            cleaner_name=cleaner_name,
        )
        return send_email(to_email, subject, html)
    except Exception:
        logger.exception("Failed in send_request_status_email for %s", to_email)
        return None
