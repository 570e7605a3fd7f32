import os
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from barbershop import timeutils
from barbershop.auth import get_current_user
from barbershop.database import Base, get_db
from barbershop.errors import AuthenticationError
from barbershop.main import app
from barbershop.models import ROLE_ADMIN, ROLE_BARBER, ROLE_CLIENT, Product, Service, User
from barbershop.services import notification_service

# Monday 2030-01-07, 08:00 shop-local
FROZEN_NOW = datetime(2030, 1, 7, 8, 0)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch):
    monkeypatch.setattr(timeutils, "shop_now", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.fixture(autouse=True)
def no_push_credentials(monkeypatch):
    monkeypatch.setattr(notification_service, "MAGICBELL_API_KEY", None)
    monkeypatch.setattr(notification_service, "MAGICBELL_API_SECRET", None)


@pytest.fixture
def auth():
    """Holder for the principal the test client acts as"""
    return {"user": None}


@pytest.fixture
def client(db, auth):
    def override_get_db():
        yield db

    async def override_current_user():
        if auth["user"] is None:
            raise AuthenticationError("Not authenticated")
        return auth["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _factory(role=ROLE_CLIENT, name=None):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=f"{role.lower()}{counter['n']}@example.com",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _factory


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN, "Admin")


@pytest.fixture
def barber(make_user):
    return make_user(ROLE_BARBER, "John")


@pytest.fixture
def customer(make_user):
    return make_user(ROLE_CLIENT, "Maria")


@pytest.fixture
def haircut(db):
    service = Service(name="Corte", price=50.0, duration=30, category="Cabelo", is_active=True)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def make_product(db):
    def _factory(name="Pomada", price=30.0, stock=5, category="Finalizadores"):
        product = Product(
            name=name, price=price, stock=stock, reserved=0, category=category, is_active=True
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _factory
