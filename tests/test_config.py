import pytest
from pydantic import ValidationError

from config import Settings


def test_missing_secret_is_fatal(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_empty_secret_is_fatal(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "BCRYPT_ROUNDS", "API_PREFIX", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JWT_SECRET", "s3cret")

    settings = Settings(_env_file=None)
    assert settings.token_expire_days == 30
    assert settings.jwt_algorithm == "HS256"
    assert settings.api_prefix == "/api/v1"
    assert settings.database_url == "sqlite:///./expenses.db"
    assert settings.cors_origins_list == ["http://localhost:5173"]


def test_cors_origins_are_split(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test ,")
    assert Settings(_env_file=None).cors_origins_list == ["http://a.test", "http://b.test"]
