"""
Secret Sanitizer - Scrub credentials out of text before it is exposed

Error messages coming back from third-party APIs regularly echo the key or
token that was used for the call. Everything that ends up in a response body,
a stored sync log or a log line goes through sanitize() first.

Rules are applied in order, each over the whole string:
1. Known provider secret prefixes (sk_live_, sk_test_, rk_live_, rk_test_, whsec_),
   wherever they appear in a word
2. Bearer tokens
3. Generic credential-shaped tokens (api/key/token/secret/password/auth + 20 chars)
4. Long hex runs (32+ chars)
5. Truncation to MAX_MESSAGE_LENGTH
"""
import re
from typing import Any, List, Tuple

REDACTED = '[REDACTED]'
TRUNCATION_SUFFIX = '... (truncated)'
MAX_MESSAGE_LENGTH = 500

# Prefix-based patterns must run before the hex rule
SECRET_PATTERNS: List[Tuple[re.Pattern, str]] = [
    # Payment provider secret / restricted keys and webhook signing secrets
    (re.compile(r'(?:sk_live_|sk_test_|rk_live_|rk_test_|whsec_)[A-Za-z0-9_-]{12,}'), REDACTED),
    # Bearer tokens
    (re.compile(r'\bBearer\s+\S+', re.IGNORECASE), f'Bearer {REDACTED}'),
    # Generic credentials, e.g. api_XXXXXXXXXXXXXXXXXXXX or token-XXXX...
    (re.compile(r'\b(?:api|key|token|secret|password|auth)[_-]?[A-Za-z0-9]{20,}\b', re.IGNORECASE), REDACTED),
    # Raw key material
    (re.compile(r'\b[0-9a-fA-F]{32,}\b'), REDACTED),
]


def sanitize(text: Any) -> str:
    """
    Return a copy of text that is safe to show to a client or write to a log

    Never raises. Safe input under the length cap is returned unchanged.

    Args:
        text: message to clean (non-strings are converted with str())

    Returns:
        Redacted and length-capped string
    """
    if text is None:
        return ''
    if not isinstance(text, str):
        try:
            text = str(text)
        except Exception:
            return REDACTED

    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)

    if len(text) > MAX_MESSAGE_LENGTH:
        text = text[:MAX_MESSAGE_LENGTH] + TRUNCATION_SUFFIX

    return text


def sanitize_exception(error: BaseException) -> str:
    """Sanitized message of an exception, falling back to its type name"""
    message = sanitize(error)
    return message or type(error).__name__
