# storefront/data/models/order.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.enums import OrderStatus


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(20), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    shipping_address = Column(JSON, nullable=False)  # snapshot at checkout

    items_total = Column(Numeric(10, 2), nullable=False)
    shipping_cost = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)

    payment_type = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    payment_id = Column(String(100), nullable=True)
    merchant_transaction_id = Column(String(100), nullable=True, index=True)

    estimated_delivery_date = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
    timeline = relationship(
        "OrderTimelineModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderTimelineModel.id",
    )
