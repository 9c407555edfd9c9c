import pytest
from pydantic import ValidationError

from cakeland.core.config import Settings


def test_defaults_are_development_friendly():
    config = Settings(ENVIRONMENT="development")

    assert config.store_zone.key == "Asia/Kolkata"
    assert config.admin_allowed_ips == []


def test_unknown_store_timezone_is_rejected():
    with pytest.raises(ValidationError):
        Settings(STORE_TIMEZONE="Middle/Earth")


def test_negative_cache_ttl_is_rejected():
    with pytest.raises(ValidationError):
        Settings(QUERY_CACHE_TTL_SECONDS=-1)


def test_admin_ip_list_accepts_json_and_csv():
    assert Settings(ADMIN_ALLOWED_IPS='["10.0.0.1", "10.0.0.2"]').admin_allowed_ips == ["10.0.0.1", "10.0.0.2"]
    assert Settings(ADMIN_ALLOWED_IPS="10.0.0.1, 10.0.0.2").admin_allowed_ips == ["10.0.0.1", "10.0.0.2"]

    with pytest.raises(ValidationError):
        Settings(ADMIN_ALLOWED_IPS="not-an-ip")


def test_production_requires_hardened_settings():
    with pytest.raises(ValidationError):
        Settings(ENVIRONMENT="production")

    with pytest.raises(ValidationError):
        Settings(
            ENVIRONMENT="production",
            ADMIN_ALLOWED_IPS="10.0.0.1",
            SECRET_KEY="x" * 40,
            DATABASE_URL="sqlite:///./prod.db",
        )

    config = Settings(
        ENVIRONMENT="production",
        ADMIN_ALLOWED_IPS="10.0.0.1",
        SECRET_KEY="x" * 40,
        DATABASE_URL="postgresql://cakeland:secret@db/cakeland",
    )
    assert config.admin_allowed_ips == ["10.0.0.1"]
