"""
Configuration management with schema validation.
Single source of truth for ShopForge settings.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

CONFIG_DIR = Path(os.getenv("SHOPFORGE_CONFIG_DIR", "config"))
SETTINGS_FILE = CONFIG_DIR / "settings.yaml"
DEFAULT_TOKEN_SECRET = "change-me"


class AppSettings(BaseModel):
    name: str = "ShopForge"
    version: str = "1.0.0"
    environment: str = "development"


class DatabaseSettings(BaseModel):
    uri: str = "mongodb://localhost:27017"
    name: str = "shopforge"
    server_selection_timeout_ms: int = 5000
    connect_retries: int = 5


class AuthSettings(BaseModel):
    token_secret: str = DEFAULT_TOKEN_SECRET
    token_expiry_days: int = 30
    otp_ttl_minutes: int = 10
    otp_cooldown_seconds: int = 60
    cooldown_idle_seconds: int = 300
    cooldown_sweep_seconds: int = 60
    reset_token_ttl_minutes: int = 10
    # Echo OTPs and reset tokens in API responses (development only)
    expose_otp: bool = False
    country_code: str = "91"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = "logs/shopforge.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class CorsSettings(BaseModel):
    origins: List[str] = Field(default_factory=lambda: ["*"])


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)


class ConfigManager:
    """Singleton configuration manager"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self.settings_path = SETTINGS_FILE
        self._settings: Optional[Settings] = None
        self._initialized = True

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute ${VAR} and ${VAR:default} expressions"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                return os.getenv(var_expr, value)
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def load_settings(self, path: Optional[Path] = None) -> Settings:
        """Load and validate settings.yaml, falling back to defaults when absent"""
        settings_path = Path(path) if path else self.settings_path
        if not settings_path.exists():
            logger.warning("Settings file not found, using defaults", path=str(settings_path))
            self._settings = Settings()
            return self._settings

        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read settings from {settings_path}: {e}")

        processed_data = self._substitute_env_vars(raw_data)
        cors = processed_data.get("cors") or {}
        if isinstance(cors.get("origins"), str):
            cors["origins"] = [o.strip() for o in cors["origins"].split(",") if o.strip()]

        try:
            self._settings = Settings(**processed_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {settings_path}: {e}")
        return self._settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings


config_manager = ConfigManager()
