"""
Password hashing backed by passlib (PBKDF2-SHA256, per-password salt).
"""

from passlib.context import CryptContext
from passlib.hash import pbkdf2_sha256

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str, rounds: int | None = None) -> str:
    if rounds is not None:
        return pbkdf2_sha256.using(rounds=rounds).hash(password)
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash; unknown formats never verify."""
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False
