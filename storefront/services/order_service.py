# storefront/services/order_service.py
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_timeline import OrderTimelineModel
from storefront.data.models.user import UserModel
from storefront.domain.enums import OrderStatus, PaymentType, UserRole
from storefront.domain.errors import BadRequest, Conflict, Forbidden, NotFound, OutOfStock
from storefront.repos.address_repo import AddressRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.authz import require_role, ADMIN_ROLES
from storefront.services.cart_service import CartService, match_variant, unit_price
from storefront.services.notification_service import NotificationService
from storefront.services.payment_gateway import PaymentGateway
from storefront.utils.settings import (
    ESTIMATED_DELIVERY_DAYS,
    FREE_SHIPPING_THRESHOLD,
    SHIPPING_FEE,
    TAX_RATE,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
COD_PAYMENT_ID = "COD"


def price_breakdown(items_total: Decimal) -> dict:
    """
    shipping is free above the threshold, otherwise a flat fee
    tax is a fixed rate of the items total
    """
    items_total = Decimal(items_total).quantize(CENT)
    shipping_cost = Decimal("0.00") if items_total > FREE_SHIPPING_THRESHOLD else SHIPPING_FEE.quantize(CENT)
    tax_amount = (items_total * TAX_RATE).quantize(CENT)
    return {
        "items_total": items_total,
        "shipping_cost": shipping_cost,
        "tax_amount": tax_amount,
        "total_amount": items_total + shipping_cost + tax_amount,
    }


def address_snapshot(address) -> dict:
    return {
        "id": address.id,
        "label": address.label,
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "country": address.country,
        "zip_code": address.zip_code,
        "phone_number": address.phone_number,
    }


class OrderService:
    """
    Order lifecycle.

    create_from_cart only snapshots the cart, stock and cart are untouched until
    confirm_payment, which decrements stock, places the order and clears the cart
    in one transaction.
    """

    def __init__(
        self,
        db: Session,
        payment_gateway: PaymentGateway | None = None,
        notification_service: NotificationService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.addresses = AddressRepo(db)
        self.cart = CartService(db)
        self.payments = payment_gateway or PaymentGateway()
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_from_cart(self, user: UserModel, address_id: int, payment_type: PaymentType) -> OrderModel:
        address = self.addresses.get_owned(address_id, user.id)
        if not address:
            raise NotFound("Address not found")

        lines = self.cart.repo.get_lines(user.id)
        if not lines:
            raise BadRequest("Cart is empty")

        items_total = Decimal("0.00")
        order_items = []

        for line in lines:
            product = line.product
            if product.is_archived:
                raise BadRequest(f"Item {product.name} is no longer available")

            variant = match_variant(product, line.size, line.color)
            if not variant or variant.stock < line.quantity:
                raise OutOfStock(f"Item {product.name} ({line.size}) is out of stock")

            price = unit_price(product, variant)
            items_total += price * line.quantity

            order_items.append(
                OrderItemModel(
                    variant_id=variant.id,
                    product_name=product.name,
                    size=line.size,
                    color=line.color,
                    quantity=line.quantity,
                    price=price,
                )
            )

        breakdown = price_breakdown(items_total)

        order = OrderModel(
            order_number=self._new_order_number(),
            user_id=user.id,
            address_id=address.id,
            shipping_address=address_snapshot(address),
            payment_type=PaymentType(payment_type).value,
            status=OrderStatus.PENDING.value,
            estimated_delivery_date=datetime.now(timezone.utc) + timedelta(days=ESTIMATED_DELIVERY_DAYS),
            items=order_items,
            timeline=[OrderTimelineModel(status=OrderStatus.PENDING.value, description="Order created")],
            **breakdown,
        )

        created = self.repo.create_order(order)
        logger.info(
            f"Order {created.order_number} created for user {user.id}: "
            f"items={breakdown['items_total']} shipping={breakdown['shipping_cost']} "
            f"tax={breakdown['tax_amount']} total={breakdown['total_amount']}"
        )
        return created

    def initiate(self, user: UserModel, address_id: int, payment_type: PaymentType) -> dict:
        """
        Checkout entry point.
        ONLINE -> PhonePe transaction, the client polls verify_and_complete
        COD    -> confirmed right away
        """
        order = self.create_from_cart(user, address_id, payment_type)

        if PaymentType(payment_type) == PaymentType.COD:
            order = self.confirm_payment(order.id, COD_PAYMENT_ID)
            return {
                "order_id": order.id,
                "order_number": order.order_number,
                "status": order.status,
                "total_amount": order.total_amount,
                "payment_url": None,
                "merchant_transaction_id": None,
            }

        payment = self.payments.initiate(order.total_amount, user.id, user.phone_number)

        order.merchant_transaction_id = payment["merchant_transaction_id"]
        self.repo.commit()

        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "total_amount": order.total_amount,
            "payment_url": payment["payment_url"],
            "merchant_transaction_id": payment["merchant_transaction_id"],
        }

    def confirm_payment(self, order_id: int, payment_id: str) -> OrderModel:
        """
        Single transaction: lock order -> decrement every variant with a
        conditional update -> PLACED + timeline -> clear cart.
        Anything failing rolls the whole thing back.
        """
        try:
            order = self.repo.get_order_for_update(order_id)
            if not order:
                raise NotFound("Order not found")

            if order.status != OrderStatus.PENDING.value:
                #duplicate callback, nothing to do
                logger.info(f"Order {order.order_number} already {order.status}, skipping confirmation")
                self.repo.commit()
                return order

            touched_products = set()
            for item in order.items:
                if item.variant_id is None:
                    raise OutOfStock(f"{item.product_name} is no longer available.")

                rowcount = self.products.decrement_variant_stock(item.variant_id, item.quantity)
                if rowcount == 0:
                    raise OutOfStock(f"Stock for {item.product_name} ran out.")
                touched_products.add(item.variant.product_id)

            for product_id in touched_products:
                self.products.sync_aggregates(product_id)

            order.status = OrderStatus.PLACED.value
            order.payment_id = payment_id
            self.repo.add_timeline(order, OrderStatus.PLACED.value, "Payment confirmed")
            self.cart.clear(order.user_id, commit=False)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.order_number} placed, payment {payment_id}")
        self.notification_service.send_order_notification(
            order.user_id, order.id, order.order_number, order.status
        )
        return order

    def verify_and_complete(self, order_id: int, user: UserModel | None = None) -> dict:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Order not found")
        if user is not None:
            self._ensure_can_view(order, user)

        if order.status == OrderStatus.PLACED.value:
            return {"status": OrderStatus.PLACED.value, "message": "Order already paid and placed"}

        if order.status != OrderStatus.PENDING.value:
            return {"status": order.status, "message": "Order status is not pending"}

        if not self.payments.check_status(order.merchant_transaction_id):
            return {"status": OrderStatus.PENDING.value, "message": "Payment not completed yet"}

        order = self.confirm_payment(order_id, order.merchant_transaction_id)
        return {"status": order.status, "message": "Payment verified successfully"}

    def update_status(
        self,
        caller: UserModel,
        order_id: int,
        status: OrderStatus,
        description: str | None = None,
    ) -> OrderModel:
        require_role(caller, *ADMIN_ROLES)

        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(f"Order #{order_id} not found")

        status = OrderStatus(status)
        order.status = status.value
        if status == OrderStatus.DELIVERED:
            order.delivered_at = datetime.now(timezone.utc)

        self.repo.add_timeline(
            order,
            status.value,
            description or f"Order status updated to {status.value}",
        )
        self.repo.commit()

        logger.info(f"Order {order.order_number} -> {status.value} by user {caller.id}")
        self.notification_service.send_order_notification(
            order.user_id, order.id, order.order_number, order.status
        )
        return order

    # =====================================================
    # QUERIES
    # =====================================================
    def list_for_user(self, user: UserModel) -> list[OrderModel]:
        return self.repo.list_for_user(user.id)

    def get_order(self, order_id: int, user: UserModel) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Order not found")
        self._ensure_can_view(order, user)
        return order

    def tracking(self, order_id: int, user: UserModel) -> dict:
        order = self.get_order(order_id, user)
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "current_status": order.status,
            "estimated_delivery": order.estimated_delivery_date,
            "timeline": list(order.timeline),
        }

    # =====================================================
    # helpers
    # =====================================================
    @staticmethod
    def _ensure_can_view(order: OrderModel, user: UserModel):
        if order.user_id == user.id:
            return
        if user.role in {r.value for r in ADMIN_ROLES} or user.role == UserRole.SUPPORT.value:
            return
        raise Forbidden("You are not allowed to view this order")

    def _new_order_number(self, attempts: int = 5) -> str:
        for _ in range(attempts):
            number = f"ORD-{uuid.uuid4().hex[:8].upper()}"
            if not self.repo.order_number_taken(number):
                return number
        raise Conflict("Could not allocate an order number, try again")
