import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base
from storefront.data.models.address import AddressModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.product import ProductModel
from storefront.data.models.product_variant import ProductVariantModel
from storefront.data.models.user import UserModel
from storefront.domain.enums import OrderStatus, PaymentType, UserRole
from storefront.domain.errors import BadRequest, Forbidden, NotFound, OutOfStock
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService, price_breakdown


class FakeGateway:
    def __init__(self, paid=False):
        self.paid = paid
        self.initiated = []

    def initiate(self, amount, user_id, mobile_number):
        self.initiated.append((amount, user_id, mobile_number))
        return {"payment_url": "https://pay.test/launch", "merchant_transaction_id": "TXN_1"}

    def check_status(self, transaction_id):
        return self.paid


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def orders(db, gateway, notifications):
    return OrderService(db, payment_gateway=gateway, notification_service=notifications)


def _variant_stock(db, variant_id):
    db.expire_all()
    return db.get(ProductVariantModel, variant_id).stock


def test_price_breakdown_thresholds():
    under = price_breakdown(Decimal("200"))
    assert under["shipping_cost"] == Decimal("50.00")
    assert under["tax_amount"] == Decimal("36.00")
    assert under["total_amount"] == Decimal("286.00")

    at_threshold = price_breakdown(Decimal("500"))
    assert at_threshold["shipping_cost"] == Decimal("50.00")

    over = price_breakdown(Decimal("500.01"))
    assert over["shipping_cost"] == Decimal("0.00")


def test_create_then_confirm_places_order(db, user, orders, notifications, make_product, make_address, add_to_cart):
    product = make_product(price="100.00", variants=[("M", "Black", 5)])
    variant_id = product.variants[0].id
    address = make_address(user)
    add_to_cart(user, product, 2)

    order = orders.create_from_cart(user, address.id, PaymentType.ONLINE)

    assert order.items_total == Decimal("200.00")
    assert order.shipping_cost == Decimal("50.00")
    assert order.tax_amount == Decimal("36.00")
    assert order.total_amount == Decimal("286.00")
    assert order.status == OrderStatus.PENDING.value
    assert order.order_number.startswith("ORD-")
    assert order.shipping_address["city"] == "Bengaluru"
    # nothing is reserved before payment
    assert _variant_stock(db, variant_id) == 5

    placed = orders.confirm_payment(order.id, "TXN_1")

    assert placed.status == OrderStatus.PLACED.value
    assert placed.payment_id == "TXN_1"
    assert _variant_stock(db, variant_id) == 3
    assert [e.status for e in placed.timeline] == ["PENDING", "PLACED"]
    assert CartService(db).get_summary(user)["items"] == []
    db.refresh(product)
    assert product.stock == 3
    assert notifications.sent == [(user.id, order.id, order.order_number, "PLACED")]


def test_confirm_is_idempotent(db, user, orders, make_product, make_address, add_to_cart):
    product = make_product(variants=[("M", "Black", 5)])
    variant_id = product.variants[0].id
    add_to_cart(user, product, 2)
    order = orders.create_from_cart(user, make_address(user).id, PaymentType.ONLINE)

    orders.confirm_payment(order.id, "TXN_1")
    again = orders.confirm_payment(order.id, "TXN_1")

    assert again.status == OrderStatus.PLACED.value
    assert _variant_stock(db, variant_id) == 3
    assert len(again.timeline) == 2


def test_two_orders_for_the_last_units(db, make_user, orders, make_product, make_address, add_to_cart):
    product = make_product(variants=[("M", "Black", 2)])
    variant_id = product.variants[0].id
    first, second = make_user(), make_user()
    add_to_cart(first, product, 2)
    add_to_cart(second, product, 2)

    order_a = orders.create_from_cart(first, make_address(first).id, PaymentType.ONLINE)
    order_b = orders.create_from_cart(second, make_address(second).id, PaymentType.ONLINE)

    orders.confirm_payment(order_a.id, "TXN_A")
    with pytest.raises(OutOfStock):
        orders.confirm_payment(order_b.id, "TXN_B")

    assert _variant_stock(db, variant_id) == 0
    losing = db.get(OrderModel, order_b.id)
    assert losing.status == OrderStatus.PENDING.value
    assert [e.status for e in losing.timeline] == ["PENDING"]
    # the failed confirmation must not empty the second cart
    assert len(CartService(db).get_summary(second)["items"]) == 1


def test_failed_confirmation_rolls_back_every_item(db, user, orders, make_product, make_address, add_to_cart):
    plenty = make_product(variants=[("M", "Black", 10)])
    scarce = make_product(variants=[("M", "Black", 1)])
    plenty_variant = plenty.variants[0].id
    add_to_cart(user, scarce, 1)
    add_to_cart(user, plenty, 3)
    order = orders.create_from_cart(user, make_address(user).id, PaymentType.ONLINE)

    # someone else buys the last scarce unit in between
    db.get(ProductVariantModel, scarce.variants[0].id).stock = 0
    db.commit()

    with pytest.raises(OutOfStock):
        orders.confirm_payment(order.id, "TXN_1")

    assert _variant_stock(db, plenty_variant) == 10
    assert db.get(OrderModel, order.id).status == OrderStatus.PENDING.value


def test_create_from_cart_errors(db, user, orders, make_product, make_address, add_to_cart):
    address = make_address(user)

    with pytest.raises(BadRequest):
        orders.create_from_cart(user, address.id, PaymentType.ONLINE)

    with pytest.raises(NotFound):
        orders.create_from_cart(user, 999, PaymentType.ONLINE)

    archived = make_product(is_archived=True)
    add_to_cart(user, archived, 1)
    with pytest.raises(BadRequest):
        orders.create_from_cart(user, address.id, PaymentType.ONLINE)


def test_create_from_cart_rejects_quantity_over_stock(db, user, orders, make_product, make_address, add_to_cart):
    product = make_product(variants=[("M", "Black", 1)])
    add_to_cart(user, product, 3)

    with pytest.raises(OutOfStock):
        orders.create_from_cart(user, make_address(user).id, PaymentType.ONLINE)


def test_initiate_online_stores_transaction(db, user, orders, gateway, make_product, make_address, add_to_cart):
    add_to_cart(user, make_product(price="100.00"), 1)

    result = orders.initiate(user, make_address(user).id, PaymentType.ONLINE)

    assert result["payment_url"] == "https://pay.test/launch"
    assert result["status"] == OrderStatus.PENDING.value
    assert db.get(OrderModel, result["order_id"]).merchant_transaction_id == "TXN_1"
    assert gateway.initiated[0][0] == Decimal("168.00")


def test_initiate_cod_places_order_right_away(db, user, orders, gateway, make_product, make_address, add_to_cart):
    add_to_cart(user, make_product(), 1)

    result = orders.initiate(user, make_address(user).id, PaymentType.COD)

    assert result["status"] == OrderStatus.PLACED.value
    assert result["payment_url"] is None
    assert db.get(OrderModel, result["order_id"]).payment_id == "COD"
    assert gateway.initiated == []


def test_verify_and_complete(db, user, orders, gateway, make_product, make_address, add_to_cart):
    add_to_cart(user, make_product(), 1)
    order_id = orders.initiate(user, make_address(user).id, PaymentType.ONLINE)["order_id"]

    assert orders.verify_and_complete(order_id, user)["status"] == "PENDING"

    gateway.paid = True
    assert orders.verify_and_complete(order_id, user) == {
        "status": "PLACED",
        "message": "Payment verified successfully",
    }
    assert orders.verify_and_complete(order_id, user)["message"] == "Order already paid and placed"


def test_update_status_appends_timeline(db, user, admin, orders, make_product, make_address, add_to_cart):
    add_to_cart(user, make_product(), 1)
    order_id = orders.initiate(user, make_address(user).id, PaymentType.COD)["order_id"]

    orders.update_status(admin, order_id, OrderStatus.SHIPPED)
    delivered = orders.update_status(admin, order_id, OrderStatus.DELIVERED, "Left at the door")

    assert delivered.delivered_at is not None
    assert [(e.status, e.description) for e in delivered.timeline][-2:] == [
        ("SHIPPED", "Order status updated to SHIPPED"),
        ("DELIVERED", "Left at the door"),
    ]

    tracking = orders.tracking(order_id, user)
    assert tracking["current_status"] == "DELIVERED"
    assert len(tracking["timeline"]) == 4


def test_update_status_requires_admin(db, user, orders, make_product, make_address, add_to_cart):
    add_to_cart(user, make_product(), 1)
    order_id = orders.initiate(user, make_address(user).id, PaymentType.COD)["order_id"]

    with pytest.raises(Forbidden):
        orders.update_status(user, order_id, OrderStatus.SHIPPED)


def test_orders_are_private_except_for_staff(db, make_user, orders, make_product, make_address, add_to_cart):
    owner, stranger = make_user(), make_user()
    support = make_user(UserRole.SUPPORT)
    add_to_cart(owner, make_product(), 1)
    order_id = orders.initiate(owner, make_address(owner).id, PaymentType.COD)["order_id"]

    assert orders.get_order(order_id, owner).id == order_id
    assert orders.get_order(order_id, support).id == order_id
    with pytest.raises(Forbidden):
        orders.get_order(order_id, stranger)
    assert [o.id for o in orders.list_for_user(owner)] == [order_id]
    assert orders.list_for_user(stranger) == []


@pytest.fixture
def file_sessions(tmp_path):
    """Separate connections on a file database, so two sessions really race."""
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'orders.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=True)
    finally:
        engine.dispose()


def test_parallel_confirmations_never_oversell(file_sessions, notifications):
    setup = file_sessions()
    product = ProductModel(
        name="Last Tee",
        description="",
        price=Decimal("100.00"),
        category="t-shirts",
        brand="Acme",
        stock=2,
        colors=["Black"],
    )
    product.variants.append(ProductVariantModel(size="M", color="Black", stock=2, sku="LAST-M"))
    setup.add(product)

    buyers = []
    for n in range(2):
        phone = f"91000000{n:02d}"
        buyer = UserModel(name=f"Buyer {n}", phone_number=phone, role=UserRole.USER.value)
        buyer.addresses.append(
            AddressModel(
                label="Home",
                street="1 FC Road",
                city="Pune",
                state="MH",
                country="India",
                zip_code="411004",
                phone_number=phone,
                is_default=True,
            )
        )
        setup.add(buyer)
        buyers.append(buyer)
    setup.commit()

    for buyer in buyers:
        setup.add(CartItemModel(user_id=buyer.id, product_id=product.id, size="M", color="Black", quantity=2))
    setup.commit()

    orders = OrderService(setup, payment_gateway=FakeGateway(), notification_service=notifications)
    order_ids = [
        orders.create_from_cart(buyer, buyer.addresses[0].id, PaymentType.ONLINE).id
        for buyer in buyers
    ]
    product_id = product.id
    variant_id = product.variants[0].id
    setup.close()

    barrier = threading.Barrier(2)
    outcomes = {}

    def confirm(order_id):
        session = file_sessions()
        svc = OrderService(session, payment_gateway=FakeGateway(), notification_service=notifications)
        try:
            barrier.wait(timeout=10)
            outcomes[order_id] = svc.confirm_payment(order_id, f"TXN_{order_id}").status
        except OutOfStock:
            outcomes[order_id] = "OUT_OF_STOCK"
        except Exception as e:
            outcomes[order_id] = f"unexpected: {e!r}"
        finally:
            session.close()

    threads = [threading.Thread(target=confirm, args=(order_id,)) for order_id in order_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert sorted(outcomes.values()) == ["OUT_OF_STOCK", "PLACED"]

    check = file_sessions()
    try:
        assert check.get(ProductVariantModel, variant_id).stock == 0
        assert check.get(ProductModel, product_id).stock == 0
        statuses = sorted(check.get(OrderModel, order_id).status for order_id in order_ids)
        assert statuses == [OrderStatus.PENDING.value, OrderStatus.PLACED.value]
    finally:
        check.close()
