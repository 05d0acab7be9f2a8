from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from shopforge.app import ShopForgeApp
from shopforge.auth.otp import OtpAuthenticator
from shopforge.auth.tokens import SessionIssuer
from shopforge.core.database import ensure_indexes
from shopforge.safety.cooldown_manager import CooldownManager
from shopforge.services.cart_service import CartService
from shopforge.services.catalog_store import CatalogStore
from shopforge.services.order_service import OrderService
from shopforge.services.user_store import UserStore
from shopforge.utils.config import AuthSettings, LoggingSettings, Settings


class FakeClock:
    """Controllable wall clock and monotonic clock for tests"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.current = start
        self.ticks = 1000.0

    def now(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.ticks

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)
        self.ticks += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    database = mongomock.MongoClient().shopforge_test
    ensure_indexes(database)
    return database


@pytest.fixture
def users(db, clock):
    return UserStore(db, now=clock.now)


@pytest.fixture
def catalog(db, clock):
    return CatalogStore(db, now=clock.now)


@pytest.fixture
def sessions(users):
    return SessionIssuer(secret="test-secret", expiry_days=30, load_user=users.find_by_id)


@pytest.fixture
def cooldown(clock):
    return CooldownManager(cooldown_seconds=60, idle_seconds=300, clock=clock.monotonic)


@pytest.fixture
def sent_codes():
    return []


@pytest.fixture
def otp_auth(users, sessions, cooldown, clock, sent_codes):
    return OtpAuthenticator(
        users=users,
        sessions=sessions,
        cooldown=cooldown,
        otp_ttl_minutes=10,
        expose_otp=True,
        sender=lambda phone, code: sent_codes.append((phone, code)),
        now=clock.now,
    )


@pytest.fixture
def carts(db, catalog, clock):
    return CartService(db, catalog, now=clock.now)


@pytest.fixture
def orders(db, catalog, carts, clock):
    return OrderService(db, catalog, carts, now=clock.now)


@pytest.fixture
def make_product(catalog):
    counter = {"n": 0}

    def _make(price=100.0, quantity=10, track_quantity=True, name=None):
        counter["n"] += 1
        return catalog.create_product(
            name=name or f"Product {counter['n']}",
            price=price,
            sku=f"SKU-{counter['n']}",
            inventory={"quantity": quantity, "track_quantity": track_quantity},
        )

    return _make


@pytest.fixture
def settings():
    return Settings(
        auth=AuthSettings(token_secret="test-secret", expose_otp=True),
        logging=LoggingSettings(file_path=None),
    )


@pytest.fixture
def shop(settings, db):
    instance = ShopForgeApp(settings=settings, db=db)
    instance.initialize(configure_logging=False)
    return instance


@pytest.fixture
def client(shop):
    from web.main import create_app

    with TestClient(create_app(shop)) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Run send-otp / verify-otp against the API and return auth headers"""

    def _login(phone: str) -> dict:
        res = client.post("/api/auth/send-otp", json={"phone": phone})
        assert res.status_code == 200, res.text
        otp = res.json()["otp"]
        res = client.post("/api/auth/verify-otp", json={"phone": phone, "otp": otp})
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['token']}"}

    return _login
