import uuid
from datetime import timedelta

import pytest
from jose import jwt
from pydantic import ValidationError

from estatehub.auth.jwt import (
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenKind,
    TokenService,
)
from estatehub.core.config import Settings


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


def test_issue_and_verify_pair(tokens):
    user_id = uuid.uuid4()
    pair = tokens.issue_pair(user_id)

    assert pair.access_token != pair.refresh_token

    access = tokens.verify(pair.access_token, TokenKind.ACCESS)
    refresh = tokens.verify(pair.refresh_token, TokenKind.REFRESH)
    assert access.user_id == user_id
    assert refresh.user_id == user_id
    assert access.kind == TokenKind.ACCESS
    assert access.jti
    assert access.expires_at - access.issued_at == timedelta(days=7)
    assert refresh.expires_at - refresh.issued_at == timedelta(days=30)


def test_access_token_rejected_as_refresh(tokens):
    token = tokens.issue_access(uuid.uuid4())
    with pytest.raises(InvalidSignatureError):
        tokens.verify(token, TokenKind.REFRESH)


def test_refresh_token_rejected_as_access(tokens):
    token = tokens.issue_refresh(uuid.uuid4())
    with pytest.raises(InvalidSignatureError):
        tokens.verify(token, TokenKind.ACCESS)


def test_type_claim_checked_even_with_right_secret(settings, tokens):
    forged = jwt.encode(
        {"sub": str(uuid.uuid4()), "type": "refresh", "iss": settings.jwt_issuer, "iat": 0, "exp": 4102444800},
        settings.jwt_secret_key.get_secret_value(),
        algorithm="HS256",
    )
    with pytest.raises(InvalidSignatureError):
        tokens.verify(forged, TokenKind.ACCESS)


def test_expired_token(tokens):
    token = tokens.issue_access(uuid.uuid4(), expires_delta=timedelta(seconds=-30))
    with pytest.raises(ExpiredTokenError):
        tokens.verify(token, TokenKind.ACCESS)


def test_tampered_signature(tokens):
    token = tokens.issue_access(uuid.uuid4())
    head, body, signature = token.split(".")
    tampered = f"{head}.{body}.{'A' if signature[0] != 'A' else 'B'}{signature[1:]}"
    with pytest.raises(InvalidSignatureError):
        tokens.verify(tampered, TokenKind.ACCESS)


@pytest.mark.parametrize("garbage", ["", "abc", "not.a.jwt"])
def test_malformed_token(tokens, garbage):
    with pytest.raises(MalformedTokenError):
        tokens.verify(garbage, TokenKind.ACCESS)


def test_wrong_issuer(settings, tokens):
    foreign = jwt.encode(
        {"sub": str(uuid.uuid4()), "type": "access", "iss": "someone-else", "iat": 0, "exp": 4102444800},
        settings.jwt_secret_key.get_secret_value(),
        algorithm="HS256",
    )
    with pytest.raises(MalformedTokenError):
        tokens.verify(foreign, TokenKind.ACCESS)


def test_settings_reject_shared_secret():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret_key="same", jwt_refresh_secret_key="same")
