"""Password hashing for staff logins (PBKDF2-SHA256)."""

import hashlib
import hmac
import secrets
from functools import lru_cache

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 390_000


def hash_password(password: str, *, iterations: int = _ITERATIONS) -> str:
    """Hash a password as ``pbkdf2_sha256$<iterations>$<salt>$<digest>``."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    return f"{_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    try:
        algorithm, iterations_str, salt, expected = encoded.split("$", 3)
        iterations = int(iterations_str)
    except ValueError:
        return False

    if algorithm != _ALGORITHM:
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    return hmac.compare_digest(digest.hex(), expected)


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash checked when no account matches, so both paths cost one PBKDF2 run."""
    return hash_password(secrets.token_hex(16))
