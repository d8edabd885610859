"""Password hashing, verification, and strength rules.

Uses bcrypt directly; plain passwords are never stored.
"""

import re

import bcrypt

# Minimum password rules for user-facing account creation
MIN_PASSWORD_LENGTH: int = 8
_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"\d")


def hash_password(password: str) -> str:
    """Hash a plain text password with a fresh bcrypt salt.

    Example:
        hashed = hash_password("my-secret-password")
        # "$2b$12$LJ3m4ys3..."
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain text password against a stored bcrypt hash.

    Malformed hashes are treated as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def password_problems(password: str) -> list[str]:
    """Return the list of strength rules the password violates (empty when acceptable).

    Args:
        password: Candidate plain text password

    Returns:
        list[str]: Human-readable rule violations
    """
    problems: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not _LETTER.search(password):
        problems.append("Password must contain at least one letter")
    if not _DIGIT.search(password):
        problems.append("Password must contain at least one digit")
    return problems
