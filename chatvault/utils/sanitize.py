"""
Security utility for sanitizing sensitive data in logs and file names
Prevents tokens and secrets from being exposed in logs
"""

import re

# Patterns to detect and redact sensitive data
SENSITIVE_PATTERNS = [
    (re.compile(r'(sk_(?:live|test)_[a-zA-Z0-9]{8,})'), 'sk_***REDACTED***'),  # Stripe secret keys
    (re.compile(r'(whsec_[a-zA-Z0-9]{8,})'), 'whsec_***REDACTED***'),  # Stripe webhook secrets
    (re.compile(r'(Bearer\s+[a-zA-Z0-9_\-\.]+)'), 'Bearer ***REDACTED***'),  # Bearer tokens
]

# Characters not allowed in archive entry names
UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_string(text: str) -> str:
    """
    Remove sensitive patterns from string

    Args:
        text: String that may contain sensitive data

    Returns:
        Sanitized string with patterns redacted
    """
    if not isinstance(text, str):
        return text

    sanitized = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)

    return sanitized


def mask_token(token: str) -> str:
    """
    Get safe version of a token for logging (only prefix)

    Args:
        token: Full token

    Returns:
        Safe display string (e.g., "eyJhbGciOiJS...***")
    """
    if not token or not isinstance(token, str):
        return "***INVALID***"

    if len(token) < 12:
        return "***REDACTED***"

    return f"{token[:12]}...***"


def safe_filename(name: str, fallback: str = "chat", max_length: int = 150) -> str:
    """
    Make a user supplied title usable as a file name

    Args:
        name: Raw name (usually a chat title)
        fallback: Used when nothing printable remains
        max_length: Maximum length of the result

    Returns:
        str: Name without path separators or reserved characters
    """
    cleaned = UNSAFE_FILENAME_CHARS.sub("_", name or "")
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" .")
    cleaned = cleaned[:max_length].rstrip(" .")
    return cleaned or fallback
