# ============================================================================
# SECRET REDACTION
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Core - Keep credentials out of logs
# PURPOSE: Mask sensitive fields before payloads are logged
# CREATED: 17 OCT 2026
# ============================================================================
"""
Secret Redaction

API payloads can carry CHAP secrets, passwords and object-store keys
(e.g. inside StartBulkVolumeRead scriptParameters). Anything logged at
DEBUG goes through redact_params() first.

Usage:
    from core.security import redact_params

    logger.debug(f"Calling {method} params={redact_params(params)}")
"""

import re
from typing import Any

REDACTED = "<REDACTED>"

# Matched case-insensitively against dict keys
SENSITIVE_KEY_PATTERN = re.compile(
    r"(password|passwd|secret|token|access_?key|secret_?key|credential)",
    re.IGNORECASE,
)

# userinfo with a password: //user:password@ (up to the last @ of the authority)
_URL_PASSWORD_PATTERN = re.compile(r"(//[^/?#:@]*):[^/?#]*@")


def is_sensitive_key(key: str) -> bool:
    """True if a field name looks like it holds a credential."""
    return bool(SENSITIVE_KEY_PATTERN.search(str(key)))


def redact_url(url: str) -> str:
    """
    Strip the password from a URL's userinfo, keeping the user name.

    Works on the raw text, so malformed hosts or ports never raise.
    """
    return _URL_PASSWORD_PATTERN.sub(rf"\1:{REDACTED}@", url)


def redact_params(value: Any) -> Any:
    """
    Return a copy of value with sensitive fields masked.

    Walks nested dicts and lists. Strings that look like URLs with
    embedded credentials have the password removed. The input is never
    modified.
    """
    if isinstance(value, dict):
        return {
            k: (REDACTED if is_sensitive_key(k) and v not in (None, "") else redact_params(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact_params(v) for v in value)
    if isinstance(value, str) and "://" in value and "@" in value:
        return redact_url(value)
    return value


__all__ = ["REDACTED", "is_sensitive_key", "redact_url", "redact_params"]
