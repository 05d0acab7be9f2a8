"""Application container wiring stores and services together"""

import os
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database

from .auth.identifiers import normalize_phone
from .auth.otp import OtpAuthenticator
from .auth.passwords import hash_password
from .auth.tokens import SessionIssuer
from .auth.user_auth import AccountService
from .core.database import connect, ensure_indexes
from .safety.cooldown_manager import CooldownManager
from .services.cart_service import CartService
from .services.catalog_store import CatalogStore
from .services.order_service import OrderService
from .services.user_store import UserStore
from .utils.config import DEFAULT_TOKEN_SECRET, Settings, config_manager
from .utils.exceptions import ConfigError, ConflictError
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class ShopForgeApp:
    """Main application class for the shop backend"""

    def __init__(self, settings: Optional[Settings] = None, db: Optional[Database] = None):
        self.config = settings
        self.db = db
        self.client: Optional[MongoClient] = None
        self.users: Optional[UserStore] = None
        self.catalog: Optional[CatalogStore] = None
        self.sessions: Optional[SessionIssuer] = None
        self.cooldown: Optional[CooldownManager] = None
        self.otp: Optional[OtpAuthenticator] = None
        self.accounts: Optional[AccountService] = None
        self.carts: Optional[CartService] = None
        self.orders: Optional[OrderService] = None
        self.initialized = False

    def initialize(self, configure_logging: bool = True):
        """Initialize the application"""
        if self.initialized:
            return
        logger.info("Initializing ShopForge application")

        if self.config is None:
            self.config = config_manager.load_settings()

        if configure_logging:
            setup_logger(
                log_level=self.config.logging.level,
                log_format=self.config.logging.format,
                file_path=self.config.logging.file_path,
                max_bytes=self.config.logging.max_bytes,
                backup_count=self.config.logging.backup_count,
            )

        logger.info(
            "Configuration loaded",
            app_name=self.config.app.name,
            version=self.config.app.version,
            environment=self.config.app.environment,
        )
        if self.config.auth.expose_otp and self.config.app.environment == "production":
            logger.warning("OTP exposure is enabled in production")
        if self.config.auth.token_secret == DEFAULT_TOKEN_SECRET:
            if self.config.app.environment == "production":
                raise ConfigError("TOKEN_SECRET must be set in production")
            logger.warning("Using the default token secret")

        if self.db is None:
            self.client = connect(self.config.database)
            self.db = self.client[self.config.database.name]
        ensure_indexes(self.db)

        auth = self.config.auth
        self.users = UserStore(self.db)
        self.catalog = CatalogStore(self.db)
        self.sessions = SessionIssuer(
            secret=auth.token_secret,
            expiry_days=auth.token_expiry_days,
            load_user=self.users.find_by_id,
        )
        self.cooldown = CooldownManager(
            cooldown_seconds=auth.otp_cooldown_seconds,
            idle_seconds=auth.cooldown_idle_seconds,
        )
        self.otp = OtpAuthenticator(
            users=self.users,
            sessions=self.sessions,
            cooldown=self.cooldown,
            otp_ttl_minutes=auth.otp_ttl_minutes,
            expose_otp=auth.expose_otp,
            country_code=auth.country_code,
        )
        self.accounts = AccountService(
            users=self.users,
            sessions=self.sessions,
            reset_token_ttl_minutes=auth.reset_token_ttl_minutes,
            expose_tokens=auth.expose_otp,
        )
        self.carts = CartService(self.db, self.catalog)
        self.orders = OrderService(self.db, self.catalog, self.carts)

        self._create_default_admin()
        self.initialized = True
        logger.info("ShopForge initialized")

    def _create_default_admin(self):
        """Seed an admin from ADMIN_PHONE / ADMIN_EMAIL / ADMIN_PASSWORD when set"""
        phone = os.getenv("ADMIN_PHONE")
        email = os.getenv("ADMIN_EMAIL")
        password = os.getenv("ADMIN_PASSWORD")
        if not (phone and email and password):
            return
        phone = normalize_phone(phone, self.config.auth.country_code)
        if self.users.find_by_phone(phone) or self.users.find_by_email(email):
            return
        try:
            self.users.create_admin(phone, "Administrator", email, hash_password(password))
        except ConflictError:
            logger.info("Default admin already exists", phone=phone)

    def shutdown(self):
        """Close the database client"""
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.info("MongoDB connection closed")
        self.initialized = False
