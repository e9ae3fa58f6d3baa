"""Shared validation utilities"""

import re
from datetime import time
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_mobile(mobile: Optional[str]) -> Optional[str]:
    """
    Normalize a contact mobile number.

    Keeps a leading "+" and digits only; 7 to 15 digits as allowed by E.164.

    Raises:
        ValueError: If the number has too few or too many digits
    """
    if not mobile:
        return mobile

    mobile = mobile.strip()
    prefix = "+" if mobile.startswith("+") else ""
    digits = re.sub(r"\D", "", mobile)

    if not 7 <= len(digits) <= 15:
        raise ValueError("Mobile number must have between 7 and 15 digits")

    return f"{prefix}{digits}"


def validate_operating_window(open_time: Optional[time], close_time: Optional[time]) -> None:
    """Raise ValueError unless open_time is strictly before close_time"""
    if open_time is not None and close_time is not None and open_time >= close_time:
        raise ValueError("Opening time must be before closing time")
