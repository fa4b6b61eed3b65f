import base64

import pytest

from ddnskit.passwords import generate_token, hash_password, is_hashed_password, password_ok

USERNAME = "admin"


def test_hash_round_trip():
    password = "password"
    hashed = hash_password(password)
    assert password_ok(hashed, password) is True
    wrong = "secret"
    assert password_ok(hashed, wrong) is False


def test_hash_uses_default_cost():
    password = "password"
    hashed = hash_password(password)
    assert hashed.startswith("$2a$10$")
    assert len(hashed) == 60


def test_hashes_are_salted():
    password = "password"
    first = hash_password(password)
    second = hash_password(password)
    assert first != second
    assert password_ok(first, password) and password_ok(second, password)


def test_password_ok_with_invalid_hash():
    password = "password"
    hashed_password = "placeholder"
    assert password_ok(hashed_password, password) is False


def test_is_hashed_password():
    password = "secret"
    assert is_hashed_password(hash_password(password)) is True
    password = "password"
    assert is_hashed_password(password) is False
    assert is_hashed_password(password.ljust(60, "x")) is False


def test_is_hashed_password_rejects_bad_cost():
    password = "secret"
    hashed = hash_password(password)
    tampered = hashed[:4] + "99" + hashed[6:]
    assert is_hashed_password(tampered) is False


def test_too_long_password_raises():
    password = "password" * 10
    with pytest.raises(ValueError):
        hash_password(password)


def test_generate_token_shape():
    generated = generate_token(USERNAME)
    assert len(base64.b64decode(generated)) == 32
    assert len(generated) == 44


def test_generate_token_is_random():
    generated = {generate_token(USERNAME) for _ in range(5)}
    assert len(generated) == 5