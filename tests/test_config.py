import pytest

from shopforge.utils.config import ConfigManager
from shopforge.utils.exceptions import ConfigError

SETTINGS_YAML = """
app:
  name: ShopForge
  environment: ${SHOPFORGE_TEST_ENV:staging}
auth:
  token_secret: ${SHOPFORGE_TEST_SECRET}
  expose_otp: ${SHOPFORGE_TEST_EXPOSE:false}
cors:
  origins: ${SHOPFORGE_TEST_ORIGINS:https://a.example,https://b.example}
"""


def test_env_substitution_and_defaults(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(SETTINGS_YAML, encoding="utf-8")
    monkeypatch.setenv("SHOPFORGE_TEST_SECRET", "s3cret")
    monkeypatch.setenv("SHOPFORGE_TEST_EXPOSE", "true")
    monkeypatch.delenv("SHOPFORGE_TEST_ENV", raising=False)
    monkeypatch.delenv("SHOPFORGE_TEST_ORIGINS", raising=False)

    settings = ConfigManager().load_settings(path)

    assert settings.app.environment == "staging"
    assert settings.auth.token_secret == "s3cret"
    assert settings.auth.expose_otp is True
    assert settings.auth.otp_ttl_minutes == 10
    assert settings.auth.token_expiry_days == 30
    assert settings.cors.origins == ["https://a.example", "https://b.example"]


def test_missing_file_uses_defaults(tmp_path):
    settings = ConfigManager().load_settings(tmp_path / "absent.yaml")
    assert settings.auth.otp_cooldown_seconds == 60
    assert settings.database.name == "shopforge"


def test_invalid_settings_raise_config_error(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("auth:\n  otp_ttl_minutes: soon\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        ConfigManager().load_settings(path)


def test_default_admin_seeded_from_env(settings, db, monkeypatch):
    from shopforge.app import ShopForgeApp

    monkeypatch.setenv("ADMIN_PHONE", "+91 90000 00009")
    monkeypatch.setenv("ADMIN_EMAIL", "root@example.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "rootpass")

    shop = ShopForgeApp(settings=settings, db=db)
    shop.initialize(configure_logging=False)

    admin = shop.users.find_by_phone("9000000009")
    assert admin.is_admin
    assert shop.accounts.login("root@example.com", "rootpass")["user"].id == admin.id


def test_default_token_secret_refused_in_production(db):
    from shopforge.app import ShopForgeApp
    from shopforge.utils.config import AppSettings, LoggingSettings, Settings

    settings = Settings(app=AppSettings(environment="production"), logging=LoggingSettings(file_path=None))

    with pytest.raises(ConfigError, match="TOKEN_SECRET"):
        ShopForgeApp(settings=settings, db=db).initialize(configure_logging=False)


def test_default_token_secret_allowed_in_development(db):
    from shopforge.app import ShopForgeApp
    from shopforge.utils.config import LoggingSettings, Settings

    shop = ShopForgeApp(settings=Settings(logging=LoggingSettings(file_path=None)), db=db)
    shop.initialize(configure_logging=False)

    assert shop.initialized
