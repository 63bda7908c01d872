"""Shared validation utilities"""

import re
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Numbers without a country code are kept as bare digits; numbers written
    with a leading "+" keep it.

    Raises:
        ValueError: If the number does not have 10 to 15 digits
    """
    if not phone:
        return phone

    has_country_code = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if not 10 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 10 and 15 digits")

    return f"+{digits}" if has_country_code else digits


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_hex_color(color: Optional[str]) -> Optional[str]:
    if not color:
        return color
    if not re.match(r"^#[0-9a-fA-F]{6}$", color):
        raise ValueError("Color must be a hex code like #6366F1")
    return color.upper()


def validate_timezone(tz: str) -> str:
    """Validate an IANA timezone name (e.g. America/Sao_Paulo)"""
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz}") from None
    return tz
