"""
Password hashing with bcrypt.

New hashes pre-hash the password with SHA-256 before bcrypt, which sidesteps
bcrypt's 72-byte limit. Verification also accepts plain bcrypt hashes such
as the ones written by the earlier Node backend (bcryptjs).

Example:
    from common.utils import hash_password, verify_password

    stored = hash_password("Admin@123")
    assert verify_password("Admin@123", stored)
"""

import base64
import hashlib

import bcrypt as bcrypt_lib

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _prehash_password(password: str) -> str:
    sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(sha256_hash).decode("utf-8")


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt with SHA-256 pre-hashing."""
    prehashed = _prehash_password(password)
    salt = bcrypt_lib.gensalt(rounds=rounds)
    return bcrypt_lib.hashpw(prehashed.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """
    Verify a password against its hash.

    Supports both new (SHA-256 pre-hashed) and legacy (direct bcrypt) hashes.
    Anything that is not a bcrypt hash never matches.
    """
    if not password or not is_bcrypt_hash(hashed):
        return False

    hashed_bytes = hashed.encode("utf-8")

    prehashed = _prehash_password(password)
    try:
        if bcrypt_lib.checkpw(prehashed.encode("utf-8"), hashed_bytes):
            return True
    except ValueError:
        pass

    # Direct bcrypt, as written by bcryptjs
    try:
        return bcrypt_lib.checkpw(password.encode("utf-8"), hashed_bytes)
    except ValueError:
        # Password too long for direct bcrypt - definitely not a match
        return False


def is_bcrypt_hash(value: str) -> bool:
    """Check whether a stored value looks like a bcrypt hash."""
    return isinstance(value, str) and value.startswith(BCRYPT_PREFIXES)
