"""Pytest fixtures for storefront tests."""

import os

# must be set before storefront.utils.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REALTIME_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import sessionmaker

from storefront.celery_worker import celery_app
from storefront.data import models
from storefront.data.database import Base, make_engine
from storefront.data.local_storage import LocalStorage
from storefront.domain.schemas import CartLine, Identity
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartReconciler
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderPlacementService
from storefront.services.receipt_service import ReceiptService

# tasks run in-process instead of going through the broker
celery_app.conf.task_always_eager = True

PLACED_AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_line(product_id=1, price="120.00", quantity=1, size_option_id=None, name=None, size_name=None):
    return CartLine(
        id=product_id,
        name=name or f"Item {product_id}",
        price=Decimal(price),
        quantity=quantity,
        size_option_id=size_option_id,
        size_name=size_name,
    )


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'store.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def users(db):
    db.add_all(
        [
            models.UserModel(id=1, full_name="Store Admin", email="admin@boki.com", role="admin"),
            models.UserModel(id=2, full_name="Kiosk", email="kiosk@boki.com", role="kiosk"),
            models.UserModel(id=10, full_name="Ana Cruz", email="ana@example.com", role="customer"),
            models.UserModel(id=11, full_name="Ben Reyes", email="ben@example.com", role="customer"),
        ]
    )
    db.commit()


@pytest.fixture
def customer(users):
    return Identity(user_id=10, role="customer", email="ana@example.com", full_name="Ana Cruz")


@pytest.fixture
def other_customer(users):
    return Identity(user_id=11, role="customer", email="ben@example.com", full_name="Ben Reyes")


@pytest.fixture
def admin(users):
    return Identity(user_id=1, role="admin", email="admin@boki.com", full_name="Store Admin")


@pytest.fixture
def kiosk(users):
    return Identity(user_id=2, role="kiosk", email="kiosk@boki.com", full_name="Kiosk")


@pytest.fixture
def storage(tmp_path):
    return LocalStorage("device-1", tmp_path / "devices")


@pytest.fixture
def cart(storage, db):
    return CartReconciler(storage=storage, repo=CartRepo(db))


@pytest.fixture
def notifier():
    return MagicMock(spec=NotificationService)


@pytest.fixture
def print_sink():
    return MagicMock()


@pytest.fixture
def receipts(print_sink, tmp_path):
    return ReceiptService(print_sink=print_sink, export_dir=tmp_path / "receipts")


@pytest.fixture
def placement(db, cart, storage, notifier, receipts):
    return OrderPlacementService(
        db=db,
        cart=cart,
        storage=storage,
        notification_service=notifier,
        receipt_service=receipts,
        clock=lambda: PLACED_AT,
    )
