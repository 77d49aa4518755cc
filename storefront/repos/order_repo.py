# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_timeline import OrderTimelineModel
from storefront.data.models.product_variant import ProductVariantModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        """Row lock on the order, items and their variants loaded."""
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(
                selectinload(OrderModel.items)
                .selectinload(OrderItemModel.variant)
                .selectinload(ProductVariantModel.product)
            )
            .with_for_update(of=OrderModel)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .options(
                    selectinload(OrderModel.items)
                    .selectinload(OrderItemModel.variant)
                    .selectinload(ProductVariantModel.product)
                )
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def order_number_taken(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def add_timeline(self, order: OrderModel, status: str, description: str | None) -> OrderTimelineModel:
        entry = OrderTimelineModel(status=status, description=description)
        order.timeline.append(entry)
        self.db.flush()
        return entry

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
