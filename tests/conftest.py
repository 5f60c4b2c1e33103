import os

# Point the app at a private in-memory database before it is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("RABBITMQ_HOST", None)
os.environ.pop("SMTP_HOST", None)
os.environ["SECRET_KEY"] = "test-secret"

import smtplib
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from sales_service.app.database import Base, SessionLocal, engine
from sales_service.app.main import app, get_mailer, get_publisher
from sales_service.app.models import Customer, Order, OrderItem, OrderStatus, Product, Stock, User


class FakeMailer:
    configured = True

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, to, subject, body):
        if self.fail:
            raise smtplib.SMTPServerDisconnected("connection lost")
        self.sent.append({"to": to, "subject": subject, "body": body})


class FakePublisher:
    def __init__(self):
        self.events = []

    def publish(self, routing_key, message):
        self.events.append((routing_key, message))
        return True


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def client(mailer, publisher):
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_publisher] = lambda: publisher
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def token_for(email):
    return jwt.encode({"sub": email}, "test-secret", algorithm="HS256")


def auth_headers(email):
    return {"Authorization": f"Bearer {token_for(email)}"}


# --- Data helpers ---
def add_customer(db, name, email):
    customer = Customer(name=name, email=email)
    customer.user = User(email=email)
    db.add(customer)
    db.commit()
    return customer


def add_product(db, name, price, quantity=None):
    product = Product(name=name, price=Decimal(price))
    db.add(product)
    db.commit()
    if quantity is not None:
        db.add(Stock(product_id=product.id, quantity=quantity))
        db.commit()
    return product


def add_order(db, customer, product, quantity=1, status=OrderStatus.PENDING):
    order = Order(customer=customer, status=status)
    order.items.append(OrderItem(product=product, quantity=quantity, price=product.price))
    db.add(order)
    db.commit()
    return order
