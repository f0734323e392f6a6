# booking_engine/utils/validators.py
"""Customer input validation helpers"""
import re
import secrets

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_SEPARATORS = re.compile(r"[\s\-().]")
PHONE_PATTERN = re.compile(r"^\+?\d{8,15}$")
# Belgian (1234) or Dutch (1234 AB / 1234AB)
POSTAL_CODE_PATTERN = re.compile(r"^\d{4}(\s?[A-Za-z]{2})?$")
DUTCH_POSTAL_CODE = re.compile(r"^\d{4}[A-Z]{2}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_phone(phone: str) -> bool:
    """
    Permissive international check: 8-15 digits once spaces, dashes,
    parentheses and dots are removed, optionally prefixed with +.
    """
    cleaned = PHONE_SEPARATORS.sub("", phone)
    return bool(PHONE_PATTERN.match(cleaned))


def is_valid_postal_code(postal_code: str) -> bool:
    return bool(POSTAL_CODE_PATTERN.match(postal_code.strip()))


def normalize_postal_code(postal_code: str) -> str:
    """1234ab -> 1234 AB; any other input is only trimmed"""
    cleaned = re.sub(r"\s", "", postal_code).upper()
    if len(cleaned) == 6 and DUTCH_POSTAL_CODE.match(cleaned):
        return f"{cleaned[:4]} {cleaned[4:]}"
    return postal_code.strip()


def is_valid_time(value: str) -> bool:
    """Strict "HH:MM" in 00:00-23:59"""
    return bool(TIME_PATTERN.match(value))


def generate_edit_token() -> str:
    """128-bit random token for appointment self-service links"""
    return secrets.token_hex(16)
