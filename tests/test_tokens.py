from datetime import datetime, timedelta

import jwt
import pytest

from config import TokenSettings
from errors import InvalidToken
from security import TokenService, get_password_hash, verify_password


@pytest.fixture
def tokens():
    return TokenService(
        TokenSettings(
            access_secret="unit-access-secret-0123456789abcdefgh",
            refresh_secret="unit-refresh-secret-0123456789abcdefgh",
        )
    )


def test_access_token_carries_subject_email_and_role(tokens):
    claims = tokens.verify_access(tokens.issue_access_token(7, "a@x.com"))
    assert claims["sub"] == "7"
    assert claims["email"] == "a@x.com"
    assert claims["role"] == "admin"
    assert claims["type"] == "access"


def test_access_token_valid_until_its_ttl(tokens):
    almost = datetime.utcnow() - timedelta(minutes=59)
    assert tokens.verify_access(tokens.issue_access_token(1, "a@x.com", now=almost))["sub"] == "1"

    expired = datetime.utcnow() - timedelta(minutes=61)
    with pytest.raises(InvalidToken):
        tokens.verify_access(tokens.issue_access_token(1, "a@x.com", now=expired))


def test_refresh_token_lives_for_days(tokens):
    almost = datetime.utcnow() - timedelta(days=29)
    assert tokens.verify_refresh(tokens.issue_refresh_token(3, now=almost))["sub"] == "3"

    expired = datetime.utcnow() - timedelta(days=31)
    with pytest.raises(InvalidToken):
        tokens.verify_refresh(tokens.issue_refresh_token(3, now=expired))


def test_token_kinds_are_not_interchangeable(tokens):
    access = tokens.issue_access_token(1, "a@x.com")
    refresh = tokens.issue_refresh_token(1)

    with pytest.raises(InvalidToken):
        tokens.verify_refresh(access)
    with pytest.raises(InvalidToken):
        tokens.verify_access(refresh)


def test_type_claim_checked_even_with_right_secret(tokens):
    forged = jwt.encode(
        {"sub": "1", "type": "refresh", "exp": datetime.utcnow() + timedelta(minutes=5)},
        tokens.config.access_secret,
        algorithm="HS256",
    )
    with pytest.raises(InvalidToken):
        tokens.verify_access(forged)


def test_tampered_and_garbage_tokens_rejected_alike(tokens):
    token = tokens.issue_access_token(1, "a@x.com")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    errors = []
    for bad in (tampered, "not-a-token", ""):
        with pytest.raises(InvalidToken) as exc:
            tokens.verify_access(bad)
        errors.append(exc.value.message)
    assert set(errors) == {"Invalid or expired token"}


def test_token_without_expiry_rejected(tokens):
    token = jwt.encode({"sub": "1", "type": "access"}, tokens.config.access_secret, algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify_access(token)


def test_equal_secrets_refused():
    with pytest.raises(ValueError):
        TokenService(
            TokenSettings(
                access_secret="same-secret-0123456789abcdefghijkl",
                refresh_secret="same-secret-0123456789abcdefghijkl",
            )
        )


def test_password_hashing():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert hashed.startswith("$2")
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "")
    assert not verify_password("secret123", "not-a-hash")
