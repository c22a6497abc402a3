"""
Security utilities for password hashing, password policy and random tokens.
"""
import re
import secrets

from passlib.context import CryptContext

from forum.config import get_settings

# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)

MIN_PASSWORD_LENGTH = 8

_PASSWORD_RULES = [
    (lambda pw: len(pw) >= MIN_PASSWORD_LENGTH, f"at least {MIN_PASSWORD_LENGTH} characters"),
    (lambda pw: re.search(r"[A-Z]", pw) is not None, "one uppercase letter"),
    (lambda pw: re.search(r"[a-z]", pw) is not None, "one lowercase letter"),
    (lambda pw: re.search(r"\d", pw) is not None, "one number"),
    (lambda pw: re.search(r"[^A-Za-z0-9\s]", pw) is not None, "one special character"),
]


def hash_password(plain_password: str) -> str:
    """
    Hash a plain password using bcrypt.
    
    Args:
        plain_password: The plain text password to hash
        
    Returns:
        Hashed password string
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.
    
    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against
        
    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def validate_password(password: str) -> list[str]:
    """
    Check a candidate password against the strength policy.

    Returns:
        Every unmet rule, in a stable order. Empty when the password is valid.
    """
    password = password or ""
    return [message for check, message in _PASSWORD_RULES if not check(password)]


def generate_reset_token(nbytes: int = 32) -> str:
    """Opaque hex token for password resets (nbytes of entropy)."""
    return secrets.token_hex(nbytes)


def generate_session_id() -> str:
    """Opaque, URL-safe session identifier."""
    return secrets.token_urlsafe(32)
