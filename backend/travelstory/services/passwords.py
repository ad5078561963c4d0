"""Password hashing for the users table (bcrypt, cost factor from settings)."""

import bcrypt

# bcrypt ignores everything past the 72nd byte of the secret
_BCRYPT_MAX_BYTES = 72


def _secret_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """Return the bcrypt hash of `password` as text, salted with `rounds` cost."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_secret_bytes(password), salt).decode("ascii")


def verify_password(password: str, stored_hash: str) -> bool:
    """True when `password` matches `stored_hash`; a malformed hash never matches."""
    try:
        return bcrypt.checkpw(_secret_bytes(password), stored_hash.encode("ascii"))
    except (ValueError, TypeError):
        return False
