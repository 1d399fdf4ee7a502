"""Input format checks for user, question and collection payloads.

The `has_valid_*` helpers raise `ValidationError` carrying the matching
message so services can call them in sequence and let the first failure
propagate.
"""

import re
from typing import Any

from ..errors import ErrorMessages, ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_string(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def has_valid_name(name: Any) -> str:
    if not is_valid_string(name):
        raise ValidationError(ErrorMessages.INVALID_NAME)
    return name.strip()


def has_valid_email(email: Any) -> str:
    if not is_valid_string(email) or not EMAIL_RE.match(email.strip()):
        raise ValidationError(ErrorMessages.INVALID_EMAIL)
    return email.strip().lower()


def has_valid_password(password: Any, pattern: str) -> str:
    """Check `password` against the configured strength `pattern`."""
    if not is_valid_string(password) or not re.match(pattern, password):
        raise ValidationError(ErrorMessages.INVALID_PASSWORD)
    return password


def has_valid_options(options: Any) -> list:
    if not is_string_list(options) or len(options) < 2:
        raise ValidationError(ErrorMessages.INVALID_OPTIONS_ARRAY)
    return list(options)


def has_valid_tags(tags: Any) -> list:
    if not is_string_list(tags):
        raise ValidationError(ErrorMessages.INVALID_TAGS_ARRAY)
    return [t.strip() for t in tags if t.strip()]


def has_valid_question_ids(ids: Any) -> list:
    """Accept a list of integer ids (numeric strings are converted)."""
    if not isinstance(ids, list):
        raise ValidationError(ErrorMessages.INVALID_QUESTIONS_ARRAY)
    out = []
    for v in ids:
        # bool is an int subclass
        if isinstance(v, bool):
            raise ValidationError(ErrorMessages.INVALID_QUESTIONS_ARRAY)
        if isinstance(v, int):
            out.append(v)
        elif isinstance(v, str) and v.strip().isdigit():
            out.append(int(v.strip()))
        else:
            raise ValidationError(ErrorMessages.INVALID_QUESTIONS_ARRAY)
    return out
