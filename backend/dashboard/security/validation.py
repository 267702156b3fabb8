"""
Input validation
Centralized rules shared by every API route. Validators return None when the
value is acceptable, or a ValidationError whose message is safe to display.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

MAX_LABEL_LENGTH = 200
MAX_ACCOUNT_ID_LENGTH = 200
MAX_INTEGRATION_ID_LENGTH = 100
MAX_STRING_LENGTH = 1000

ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


@dataclass(frozen=True)
class ValidationError:
    """A rejected input. Never carries the raw offending value."""
    field: str
    message: str
    kind: str = 'invalid_input'

    def to_dict(self) -> dict:
        return {'field': self.field, 'message': self.message, 'kind': self.kind}


def validate_account_id(value: Any) -> Optional[ValidationError]:
    """
    Validate an account ID

    Must be a non-empty string of at most MAX_ACCOUNT_ID_LENGTH characters
    drawn from letters, digits, underscore and hyphen.
    """
    if not isinstance(value, str):
        return ValidationError('accountId', 'Account ID must be a string')

    if len(value) == 0 or len(value) > MAX_ACCOUNT_ID_LENGTH:
        return ValidationError('accountId', 'Invalid account ID length')

    if not ID_PATTERN.match(value):
        return ValidationError(
            'accountId',
            'Account ID may only contain letters, digits, underscores and hyphens'
        )

    return None


def validate_integration_id(value: Any) -> Optional[ValidationError]:
    """Validate an integration ID such as 'stripe'"""
    if not isinstance(value, str):
        return ValidationError('integrationId', 'Integration ID must be a string')

    if len(value) == 0 or len(value) > MAX_INTEGRATION_ID_LENGTH:
        return ValidationError('integrationId', 'Invalid integration ID length')

    if not ID_PATTERN.match(value):
        return ValidationError('integrationId', 'Integration ID contains invalid characters')

    return None


def validate_label(value: Any) -> Optional[ValidationError]:
    """Validate a user-chosen label (account name, etc.)"""
    if not isinstance(value, str):
        return ValidationError('label', 'Label must be a string')

    if not value.strip():
        return ValidationError('label', 'Label cannot be empty')

    if len(value) > MAX_LABEL_LENGTH:
        return ValidationError('label', f'Label must be at most {MAX_LABEL_LENGTH} characters')

    return None


def validate_credentials(value: Any) -> Optional[ValidationError]:
    """
    Validate a credentials mapping

    Must be a dict of string keys to string values, each bounded in length.
    Credential values are never included in the message.
    """
    if not isinstance(value, dict):
        return ValidationError('credentials', 'Credentials must be an object')

    for key, val in value.items():
        if not isinstance(key, str) or len(key) > MAX_STRING_LENGTH:
            return ValidationError('credentials', 'Invalid credential key')

        # Keys are echoed back only when they look like identifiers
        shown = key if ID_PATTERN.match(key) and len(key) <= 50 else 'value'

        if not isinstance(val, str):
            return ValidationError('credentials', f'Credential "{shown}" must be a string value')

        if len(val) > MAX_STRING_LENGTH:
            return ValidationError('credentials', f'Credential "{shown}" value exceeds maximum length')

    return None


def validate_boolean(field: str, value: Any) -> Optional[ValidationError]:
    """Validate a strict JSON boolean"""
    if not isinstance(value, bool):
        return ValidationError(field, f'{field} must be a boolean')
    return None


def validate_date_string(field: str, value: Any) -> Optional[ValidationError]:
    """Validate a YYYY-MM-DD date that exists on the calendar"""
    if not isinstance(value, str):
        return ValidationError(field, f'{field} must be a string')

    if not DATE_PATTERN.match(value):
        return ValidationError(field, f'{field} must be in YYYY-MM-DD format')

    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        return ValidationError(field, f'{field} is not a valid date')

    return None
