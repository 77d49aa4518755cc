import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["FAL_KEY"] = "test-key"
os.environ["APP_URL"] = "https://shop.test"

from decimal import Decimal

import pytest

from storefront.data.database import Base, SessionLocal, engine
from storefront.data import models  # noqa: F401
from storefront.data.models.address import AddressModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.data.models.user import UserModel
from storefront.domain.enums import UserRole


class FakeRedis:
    """Just enough of redis.Redis for the lock and otp stores."""

    def __init__(self):
        self.store = {}

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.store:
            return None
        self.store[name] = value
        return True

    def get(self, name):
        return self.store.get(name)

    def delete(self, name):
        return 1 if self.store.pop(name, None) is not None else 0

    def eval(self, script, numkeys, key, token):
        if self.store.get(key) == token:
            del self.store[key]
            return 1
        return 0


class RecordingNotifications:
    def __init__(self):
        self.sent = []

    def send_order_notification(self, user_id, order_id, order_number, status):
        self.sent.append((user_id, order_id, order_number, status))

    def send_otp(self, phone_number, code):
        self.sent.append((phone_number, code))


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.USER, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        user = UserModel(
            name=kwargs.get("name", f"User {n}"),
            phone_number=kwargs.get("phone_number", f"90000000{n:02d}"),
            email=kwargs.get("email", f"user{n}@example.com"),
            role=role.value,
            is_verified=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(price="100.00", variants=(("M", "Black", 5),), **kwargs):
        counter["n"] += 1
        n = counter["n"]
        product = ProductModel(
            name=kwargs.get("name", f"Tee {n}"),
            description=kwargs.get("description", "Cotton tee"),
            price=Decimal(price),
            gender=kwargs.get("gender", "UNISEX"),
            category=kwargs.get("category", "t-shirts"),
            brand=kwargs.get("brand", "Acme"),
            images=kwargs.get("images", [f"/uploads/products/tee-{n}.jpg"]),
            is_trending=kwargs.get("is_trending", False),
            is_archived=kwargs.get("is_archived", False),
            stock=sum(v[2] for v in variants),
            colors=list(dict.fromkeys(v[1] for v in variants)),
        )
        for i, (size, color, stock) in enumerate(variants):
            product.variants.append(
                ProductVariantModel(size=size, color=color, stock=stock, sku=f"SKU-{n}-{i}")
            )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_address(db):
    def _make(user):
        address = AddressModel(
            user_id=user.id,
            label="Home",
            street="12 MG Road",
            city="Bengaluru",
            state="KA",
            country="India",
            zip_code="560001",
            phone_number=user.phone_number,
            is_default=True,
        )
        db.add(address)
        db.commit()
        db.refresh(address)
        return address

    return _make


@pytest.fixture
def add_to_cart(db):
    def _add(user, product, quantity, size="M", color="Black"):
        line = CartItemModel(
            user_id=user.id,
            product_id=product.id,
            size=size,
            color=color,
            quantity=quantity,
        )
        db.add(line)
        db.commit()
        return line

    return _add
