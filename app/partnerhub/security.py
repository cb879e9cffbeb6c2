import hashlib
import secrets

from werkzeug.security import check_password_hash, generate_password_hash


def generate_token(nbytes: int = 32) -> str:
    """Random hex token; only its sha256 digest is ever stored."""
    return secrets.token_hex(nbytes)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_otp() -> str:
    """Six-digit, zero-padded one-time code."""
    return f"{secrets.randbelow(1_000_000):06d}"


def hash_secret(value: str) -> str:
    return generate_password_hash(value)


def verify_secret(hashed: str, value: str) -> bool:
    return check_password_hash(hashed, value)
