"""
Client-side password helpers.

Used when the backend's ``/validate-password`` and ``/generate-password``
endpoints cannot be reached. The rules match the backend's.
"""
import re
import string
import secrets

MIN_LENGTH = 8
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile("[" + re.escape(SPECIAL_CHARS) + "]")

_CLASSES = (
    string.ascii_uppercase,
    string.ascii_lowercase,
    string.digits,
    SPECIAL_CHARS,
)


def is_password_strong(password: str) -> bool:
    """At least 8 chars with upper, lower, digit and special character."""
    return (
        len(password) >= MIN_LENGTH
        and bool(_UPPER.search(password))
        and bool(_LOWER.search(password))
        and bool(_DIGIT.search(password))
        and bool(_SPECIAL.search(password))
    )


def generate_secure_password(length: int = 16) -> str:
    """Generate a random password containing every character class.

    Raises:
        ValueError: If length is too short to hold one of each class.
    """
    if length < len(_CLASSES):
        raise ValueError(f"length must be at least {len(_CLASSES)}")
    chars = [secrets.choice(alphabet) for alphabet in _CLASSES]
    alphabet = "".join(_CLASSES)
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
