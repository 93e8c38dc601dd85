"""
Token generation, parsing, and hashing utilities for sessions, password
reset links and stored passwords.

Responsibilities:
- Generate token strings of the form: <prefix><token_id>_<secret>
  with prefixes sc_sess_ (login sessions) and sc_reset_ (password reset)
- Hash secrets and passwords using Argon2id (preferred) with PBKDF2-HMAC-SHA256 fallback
- Verify secrets with constant-time comparison
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

ARGON2_AVAILABLE = False
try:  # pragma: no cover - availability varies in environments
    from argon2 import PasswordHasher
    from argon2.low_level import Type

    _argon2 = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)
    ARGON2_AVAILABLE = True
except ImportError:  # pragma: no cover
    _argon2 = None


SESSION_PREFIX = "sc_sess_"
RESET_PREFIX = "sc_reset_"
TOKEN_PREFIXES = (SESSION_PREFIX, RESET_PREFIX)


@dataclass(frozen=True)
class ParsedToken:
    prefix: str
    token_id: str
    secret: str


def generate_token_id() -> str:
    """Return a short hex token id suitable for DB lookup and logs."""
    # hex only, so the first '_' after the prefix always ends the id
    return uuid.uuid4().hex[:16]


def generate_secret(length: int = 32) -> str:
    """Return a high-entropy url-safe secret string."""
    return secrets.token_urlsafe(length)


def build_token_string(prefix: str, token_id: str, secret: str) -> str:
    return f"{prefix}{token_id}_{secret}"


def parse_token(token: str) -> Optional[ParsedToken]:
    """Parse a token string into prefix, token_id and secret.

    Returns None if format is invalid.
    """
    if not token:
        return None
    prefix = next((p for p in TOKEN_PREFIXES if token.startswith(p)), None)
    if prefix is None:
        return None
    body = token[len(prefix):]
    # token_id contains no underscores (hex), secret may contain '_' so split once
    idx = body.find("_")
    if idx <= 0:
        return None
    token_id = body[:idx]
    secret = body[idx + 1:]
    if not token_id or not secret:
        return None
    return ParsedToken(prefix=prefix, token_id=token_id, secret=secret)


def _pbkdf2_hash(secret: str, *, iterations: int = 200_000, salt_bytes: int = 16) -> str:
    salt = secrets.token_bytes(salt_bytes)
    dk = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, iterations)
    return "pbkdf2$sha256$%d$%s$%s" % (
        iterations,
        base64.urlsafe_b64encode(salt).decode("ascii"),
        base64.urlsafe_b64encode(dk).decode("ascii"),
    )


def _pbkdf2_verify(secret: str, encoded: str) -> bool:
    try:
        scheme, algo, iter_str, b64_salt, b64_dk = encoded.split("$")
    except ValueError:
        return False
    if scheme != "pbkdf2" or algo != "sha256":
        return False
    try:
        iterations = int(iter_str)
        salt = base64.urlsafe_b64decode(b64_salt)
        dk_expected = base64.urlsafe_b64decode(b64_dk)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(dk, dk_expected)


def hash_secret(secret: str) -> str:
    """Hash a secret using Argon2id when available, otherwise PBKDF2-HMAC-SHA256."""
    if ARGON2_AVAILABLE:
        return _argon2.hash(secret)  # type: ignore[union-attr]
    return _pbkdf2_hash(secret)


def verify_secret(secret: str, encoded_hash: str) -> bool:
    if not secret or not encoded_hash:
        return False
    if encoded_hash.startswith("$argon2id$") and ARGON2_AVAILABLE:
        from argon2.exceptions import VerificationError, InvalidHashError

        try:
            return _argon2.verify(encoded_hash, secret)  # type: ignore[union-attr]
        except (VerificationError, InvalidHashError):
            return False
    if encoded_hash.startswith("pbkdf2$"):
        return _pbkdf2_verify(secret, encoded_hash)
    # Unknown scheme
    return False


# Passwords share the secret hashing scheme.
hash_password = hash_secret
verify_password = verify_secret


def generate_token(prefix: str = SESSION_PREFIX) -> Tuple[str, str, str]:
    """Generate a new token and return (token_id, secret, full_token)."""
    tid = generate_token_id()
    sec = generate_secret()
    token = build_token_string(prefix, tid, sec)
    return tid, sec, token
