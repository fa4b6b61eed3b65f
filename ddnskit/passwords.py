"""Password hashing and login token generation."""

import base64
import hashlib
import hmac
import re
import secrets
import time

import bcrypt

DEFAULT_COST = 10
MIN_COST = 4
MAX_COST = 31
_MAX_PASSWORD_BYTES = 72
_MIN_HASH_SIZE = 59
_HASH_HEADER = re.compile(rb"\$[\x00-2](?:[^$])?\$([0-9]{2})\$")


def hash_password(password: str) -> str:
    """Return the bcrypt hash of ``password``; raise ValueError if it is over 72 bytes."""
    data = password.encode()
    if len(data) > _MAX_PASSWORD_BYTES:
        raise ValueError("bcrypt: password length exceeds 72 bytes")
    salt = bcrypt.gensalt(rounds=DEFAULT_COST, prefix=b"2a")
    return bcrypt.hashpw(data, salt).decode()


def password_ok(hashed_password: str, password: str) -> bool:
    """Return True if ``password`` matches ``hashed_password``."""
    try:
        return bcrypt.checkpw(password.encode(), hashed_password.encode())
    except ValueError:
        return False


def is_hashed_password(password: str) -> bool:
    """Return True if ``password`` looks like a bcrypt hash with a valid cost."""
    data = password.encode()
    if len(data) < _MIN_HASH_SIZE:
        return False
    match = _HASH_HEADER.match(data)
    if match is None:
        return False
    return MIN_COST <= int(match.group(1)) <= MAX_COST


def generate_token(username: str) -> str:
    """Return a base64 HMAC-SHA256 of the username and time under a random key."""
    key = str(secrets.randbits(64)).encode()
    message = f"{username}{int(time.time())}".encode()
    digest = hmac.new(key, message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()