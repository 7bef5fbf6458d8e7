"""Password hashing helpers."""

import bcrypt

# Compared against when no user matches the email
_DUMMY_HASH = bcrypt.hashpw(b"cloud-locker-dummy-password", bcrypt.gensalt()).decode("utf-8")


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh per-hash salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check a plaintext candidate against a stored hash.

    A missing hash still runs a full bcrypt comparison and returns False.
    """
    if not password_hash:
        bcrypt.checkpw(password.encode("utf-8"), _DUMMY_HASH.encode("utf-8"))
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
