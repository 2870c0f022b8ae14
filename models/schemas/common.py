import re

from marshmallow import ValidationError

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")


def normalize_email(raw):
    return raw.strip().lower() if isinstance(raw, str) else raw


def validate_password_strength(value: str, min_length: int = 8) -> None:
    if value is None:
        raise ValidationError("Password is required.")
    problems = []
    if len(value) < min_length:
        problems.append(f"at least {min_length} characters")
    if not _UPPER.search(value):
        problems.append("an uppercase letter")
    if not _LOWER.search(value):
        problems.append("a lowercase letter")
    if not _DIGIT.search(value):
        problems.append("a number")
    if not _SYMBOL.search(value):
        problems.append("a special character")
    if problems:
        raise ValidationError("Password must contain " + ", ".join(problems) + ".")


def first_messages(messages) -> dict:
    """Flatten marshmallow's {field: [msg, ...]} into {field: msg}."""
    if not isinstance(messages, dict):
        return {"_schema": str(messages)}
    flat = {}
    for field, value in messages.items():
        if isinstance(value, list):
            flat[field] = str(value[0]) if value else ""
        elif isinstance(value, dict):
            flat[field] = next(iter(first_messages(value).values()), "")
        else:
            flat[field] = str(value)
    return flat
