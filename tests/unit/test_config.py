"""Unit tests for Settings."""

import pytest
from pydantic import ValidationError

from streamhub.config import DEV_ACCESS_SECRET, DEV_REFRESH_SECRET, Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestDefaults:
    def test_token_lifetimes(self, monkeypatch):
        for var in ("ACCESS_TOKEN_EXPIRE_SECONDS", "REFRESH_TOKEN_EXPIRE_DAYS", "TOKEN_LEEWAY_SECONDS"):
            monkeypatch.delenv(var, raising=False)

        settings = _settings()

        assert settings.access_token_expire_seconds == 900
        assert settings.refresh_token_expire_seconds == 7 * 24 * 60 * 60
        assert settings.token_leeway_seconds == 0

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("BCRYPT_ROUNDS", "12")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

        settings = _settings()

        assert settings.bcrypt_rounds == 12
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_bcrypt_rounds_bounds(self):
        with pytest.raises(ValidationError):
            _settings(bcrypt_rounds=3)


class TestSecrets:
    def test_insecure_defaults_reported(self, monkeypatch):
        monkeypatch.delenv("JWT_ACCESS_SECRET", raising=False)
        monkeypatch.delenv("JWT_REFRESH_SECRET", raising=False)

        settings = _settings(environment="development")

        assert settings.jwt_access_secret == DEV_ACCESS_SECRET
        assert settings.jwt_refresh_secret == DEV_REFRESH_SECRET
        assert settings.insecure_defaults() == ["jwt_access_secret", "jwt_refresh_secret"]

    def test_production_rejects_dev_secrets(self):
        with pytest.raises(ValidationError, match="Development defaults"):
            _settings(
                environment="production",
                jwt_access_secret=DEV_ACCESS_SECRET,
                jwt_refresh_secret="real-refresh-secret",
            )

    def test_production_rejects_shared_secret(self):
        with pytest.raises(ValidationError, match="must differ"):
            _settings(
                environment="production",
                jwt_access_secret="same-secret",
                jwt_refresh_secret="same-secret",
            )

    def test_production_accepts_distinct_real_secrets(self):
        settings = _settings(
            environment="Production",
            jwt_access_secret="real-access-secret",
            jwt_refresh_secret="real-refresh-secret",
        )

        assert settings.is_production is True
        assert settings.insecure_defaults() == []
