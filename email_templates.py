"""
HTML email templates for TidyUp.

Every public function returns a complete HTML string ready for sending via
the ``send_email`` helper in ``notifications.py``.

Styles are inlined for email-client compatibility. Accent colour is
#0E7C86 (teal) on a #f5f7f7 background.
"""

from html import escape as _esc


# ---------------------------------------------------------------------------
# Shared layout helpers
# ---------------------------------------------------------------------------

def _header():
    return (
        '<div style="text-align:center;margin-bottom:24px;">'
        '<h1 style="color:#0E7C86;font-size:28px;margin:0;font-family:Arial,sans-serif;font-weight:700;">TidyUp</h1>'
        '<p style="color:#6b7280;margin:4px 0 0;font-size:14px;">Home cleaning, booked in minutes</p>'
        '</div>'
    )


def _footer():
    return (
        '<div style="text-align:center;margin-top:24px;padding-top:16px;border-top:1px solid #e5e7eb;'
        'color:#9ca3af;font-size:12px;line-height:1.6;">'
        '<p style="margin:0;">You are receiving this email because you have a TidyUp account.</p>'
        '</div>'
    )


def _wrap(body_html):
    """Wrap inner content in the common email shell."""
    return (
        '<!DOCTYPE html>'
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1.0">'
        '<title>TidyUp</title></head>'
        '<body style="margin:0;padding:0;background-color:#f5f7f7;">'
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;padding:32px 16px;">'
        + _header()
        + '<div style="background:#ffffff;border-radius:10px;padding:28px;">'
        + body_html
        + '</div>'
        + _footer()
        + '</div></body></html>'
    )


def _greeting(name):
    return '<p style="color:#4b5563;line-height:1.6;">Hi {},</p>'.format(
        _esc(str(name)) if name else 'there'
    )


def _details(rows):
    """Key-value table. *rows* is a list of (label, value) tuples."""
    inner = ''.join(
        '<tr><td style="padding:6px 0;color:#6b7280;font-size:14px;">{}</td>'
        '<td style="padding:6px 0;color:#111827;font-size:14px;font-weight:600;text-align:right;">{}</td></tr>'
        .format(_esc(str(label)), _esc(str(value)))
        for label, value in rows
    )
    return (
        '<div style="background:#ECF7F8;border-radius:8px;padding:16px 20px;margin:20px 0;">'
        '<table style="width:100%;border-collapse:collapse;">' + inner + '</table></div>'
    )


def _button(url, label):
    return (
        '<div style="text-align:center;margin:24px 0 12px;">'
        '<a href="{url}" style="display:inline-block;background:#0E7C86;color:#ffffff;'
        'text-decoration:none;padding:12px 32px;border-radius:8px;font-size:16px;font-weight:600;">'
        '{label}</a></div>'
    ).format(url=_esc(str(url)), label=_esc(str(label)))


def _fallback_link(url):
    return (
        '<p style="color:#9ca3af;font-size:12px;line-height:1.6;word-break:break-all;">'
        'If the button doesn\'t work, copy and paste this URL into your browser:<br>'
        '<a href="{url}" style="color:#0E7C86;">{url}</a></p>'
    ).format(url=_esc(str(url)))


# ---------------------------------------------------------------------------
# Account emails
# ---------------------------------------------------------------------------

def verification_html(name, verify_url):
    """Return HTML for the sign-up verification email."""
    body = (
        '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">Verify your email</h2>'
        + _greeting(name)
        + '<p style="color:#4b5563;line-height:1.6;">Thanks for joining TidyUp. '
        'Confirm your email address to start booking cleanings.</p>'
        + _button(verify_url, 'Verify Email')
        + '<p style="color:#6b7280;font-size:13px;line-height:1.6;">This link expires in <strong>24 hours</strong>.</p>'
        + _fallback_link(verify_url)
    )
    return _wrap(body)


def password_reset_html(name, reset_url):
    """Return HTML for a password-reset email with a clickable link."""
    body = (
        '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">Reset your password</h2>'
        + _greeting(name)
        + '<p style="color:#4b5563;line-height:1.6;">We received a request to reset your TidyUp password.</p>'
        + _button(reset_url, 'Reset Password')
        + '<p style="color:#6b7280;font-size:13px;line-height:1.6;">This link expires in <strong>1 hour</strong>. '
        'If you didn\'t request a reset, you can ignore this email.</p>'
        + _fallback_link(reset_url)
    )
    return _wrap(body)


def application_decision_html(name, approved):
    """Return HTML telling an applicant whether they can now clean for TidyUp."""
    if approved:
        headline = 'You\'re approved!'
        text = ('Your cleaner application has been approved. Log in to the cleaner app '
                'to browse open requests in your area.')
    else:
        headline = 'Application update'
        text = ('Thank you for applying to clean with TidyUp. We are not able to approve '
                'your application at this time.')
    body = (
        '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">{}</h2>'.format(headline)
        + _greeting(name)
        + '<p style="color:#4b5563;line-height:1.6;">{}</p>'.format(text)
    )
    return _wrap(body)


# ---------------------------------------------------------------------------
# Request emails
# ---------------------------------------------------------------------------

_STATUS_HEADLINES = {
    'accepted': 'A cleaner accepted your request',
    'pending': 'Your request is open again',
    'Confirmed': 'Your cleaning is confirmed',
    'Completed': 'Your cleaning is complete',
    'Rejected': 'Your request was declined',
}


def request_status_html(name, status, location, date, time, cleaner_name=None):
    """Return HTML for a cleaning-request status change."""
    headline = _STATUS_HEADLINES.get(status, 'Your request was updated')
    rows = [('Location', location), ('Date', date), ('Time', time)]
    if cleaner_name:
        rows.append(('Cleaner', cleaner_name))
    rows.append(('Status', status))

    body = (
        '<h2 style="color:#111827;margin:0 0 12px;font-size:22px;">{}</h2>'.format(_esc(headline))
        + _greeting(name)
        + _details(rows)
    )
    if status == 'Completed':
        body += ('<p style="color:#4b5563;line-height:1.6;">'
                 'Let us know how it went by rating your cleaner in the app.</p>')
    return _wrap(body)
