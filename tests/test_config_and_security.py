from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from second_brain.config import Settings, get_config_path
from second_brain.exceptions import AuthenticationError
from second_brain.utils.security_utils import (
    create_access_token,
    decode_access_token,
    generate_share_token,
    hash_password,
    new_id,
    verify_password,
)


def test_defaults():
    settings = Settings(SECRET_KEY="a-real-signing-key")

    assert settings.API_PREFIX == "/api/v1"
    assert settings.ACCESS_TOKEN_EXPIRE_MINUTES == 1440
    assert settings.SHARED_BRAIN_ITEM_LIMIT == 50
    assert settings.DEFAULT_PAGE_SIZE == 20
    assert settings.MAX_PAGE_SIZE == 100
    assert settings.METADATA_FETCH_TIMEOUT == 5.0
    assert settings.METADATA_MAX_BYTES == 1048576


@pytest.mark.parametrize("secret", ["", "change-me", "00000000"])
def test_placeholder_secrets_are_rejected(secret):
    with pytest.raises(PydanticValidationError):
        Settings(SECRET_KEY=secret)


def test_storage_backend_is_validated():
    assert Settings(SECRET_KEY="a-real-signing-key", STORAGE_BACKEND="MEMORY").STORAGE_BACKEND == "memory"
    with pytest.raises(PydanticValidationError):
        Settings(SECRET_KEY="a-real-signing-key", STORAGE_BACKEND="sqlite")


def test_cors_origin_list():
    settings = Settings(SECRET_KEY="a-real-signing-key", CORS_ORIGINS="https://a.test, ,https://b.test ")
    assert settings.cors_origin_list == ["https://a.test", "https://b.test"]


def test_config_path_env_override(tmp_path, monkeypatch):
    config_file = tmp_path / "custom.env"
    config_file.write_text("LOG_LEVEL=DEBUG\n")
    monkeypatch.setenv("SECOND_BRAIN_CONFIG_PATH", str(config_file))

    assert get_config_path() == str(config_file)


def test_password_hashing():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)
    assert not verify_password("secret1", None)


def test_access_token_round_trip_and_expiry():
    assert decode_access_token(create_access_token("usr_abc")) == "usr_abc"

    with pytest.raises(AuthenticationError):
        decode_access_token(create_access_token("usr_abc", expires_delta=timedelta(seconds=-1)))
    with pytest.raises(AuthenticationError):
        decode_access_token("not.a.token")


def test_ids_and_share_tokens():
    assert new_id("brn").startswith("brn_")
    assert len(new_id("itm")) == len("itm_") + 12
    token = generate_share_token()
    assert len(token) == 64
    assert token != generate_share_token()
