"""Free-text input cleanup.

Text is stored as the user typed it. HTML escaping happens where it is
rendered (see email_templates._esc).
"""


def clean_text(value, max_length=None):
    """Trim a free-text field; returns "" for missing or non-string input."""
    if not isinstance(value, str):
        return ""
    value = value.strip()
    if max_length is not None:
        value = value[:max_length]
    return value
