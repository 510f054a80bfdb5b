from datetime import UTC, datetime, timedelta

import jwt
import pytest

from fintrack.config import Settings, check_jwt_secret, get_settings
from fintrack.core.exceptions import InvalidToken
from fintrack.models import User
from fintrack.services.tokens import (
    ACCESS,
    REFRESH,
    create_access_token,
    create_refresh_token,
    issue_token_pair,
    verify_token,
)


def _user() -> User:
    return User(id=42, email="ada@example.com", first_name="Ada", last_name="Lovelace")


def test_access_token_carries_identity_claims():
    payload = verify_token(create_access_token(_user()), expected_type=ACCESS)

    assert payload["id"] == 42
    assert payload["email"] == "ada@example.com"
    assert payload["firstName"] == "Ada"
    assert payload["lastName"] == "Lovelace"
    assert payload["type"] == ACCESS
    assert payload["exp"] > payload["iat"]


def test_refresh_token_is_minimal_and_unique():
    first = create_refresh_token(_user())
    second = create_refresh_token(_user())

    assert first != second
    payload = verify_token(first, expected_type=REFRESH)
    assert set(payload) == {"id", "type", "jti", "iat", "exp"}


def test_token_pair_expiry_matches_refresh_lifetime():
    before = datetime.now(tz=UTC)
    pair = issue_token_pair(_user())
    lifetime = timedelta(minutes=get_settings().REFRESH_TOKEN_EXPIRE_MINUTES)

    assert before + lifetime - timedelta(seconds=5) <= pair.refresh_expires_at
    assert pair.refresh_expires_at <= datetime.now(tz=UTC) + lifetime


def test_expired_token_rejected():
    token = create_access_token(_user(), expires_delta=timedelta(seconds=-1))
    with pytest.raises(InvalidToken):
        verify_token(token)


def test_tampered_token_rejected():
    token = create_access_token(_user())
    forged = jwt.encode(
        jwt.decode(token, options={"verify_signature": False}),
        "some-other-secret-that-is-long-enough",
        algorithm="HS256",
    )
    with pytest.raises(InvalidToken):
        verify_token(forged)


def test_garbage_token_rejected():
    with pytest.raises(InvalidToken):
        verify_token("not-a-jwt")


def test_refresh_token_not_accepted_as_access_token():
    with pytest.raises(InvalidToken):
        verify_token(create_refresh_token(_user()), expected_type=ACCESS)


def test_missing_secret_logs_warning(caplog):
    caplog.set_level("WARNING", logger="fintrack.config")
    configured = Settings(JWT_SECRET="   ", app_env="dev")

    assert configured.JWT_SECRET is None
    assert check_jwt_secret(configured) is False
    assert any("insecure" in record.getMessage() for record in caplog.records)


def test_missing_secret_is_an_error_in_production(caplog):
    caplog.set_level("WARNING", logger="fintrack.config")

    assert check_jwt_secret(Settings(JWT_SECRET=None, app_env="prod")) is False
    assert any(record.levelname == "ERROR" for record in caplog.records)


def test_configured_secret_passes_check(caplog):
    caplog.set_level("WARNING", logger="fintrack.config")

    assert check_jwt_secret(Settings(JWT_SECRET="a" * 40)) is True
    assert not caplog.records
