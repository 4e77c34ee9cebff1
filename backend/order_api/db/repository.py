import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import exists, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from order_api.db.models import Order, utcnow

logger = logging.getLogger(__name__)


class OrderConflictError(Exception):
    """The row changed underneath an update but still exists."""

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} was modified concurrently")
        self.order_id = order_id


class OrderRepository:
    """
    Data access for the ``orders`` table, scoped to one request's session.

    Absence is signalled with ``None`` / ``False``; store failures propagate
    as SQLAlchemy errors.
    """

    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[Order]:
        return list(self.session.scalars(select(Order).order_by(Order.id)))

    def get_by_id(self, order_id: int) -> Optional[Order]:
        return self.session.get(Order, order_id)

    def exists(self, order_id: int) -> bool:
        return bool(self.session.scalar(select(exists().where(Order.id == order_id))))

    def insert(self, customer_name: str, total_amount: Decimal) -> Order:
        order = Order(
            customer_name=customer_name,
            total_amount=total_amount,
            created_at=utcnow(),
        )
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)
        return order

    def update(
        self, order_id: int, customer_name: str, total_amount: Decimal
    ) -> Optional[Order]:
        order = self.get_by_id(order_id)
        if order is None:
            return None

        order.customer_name = customer_name
        order.total_amount = total_amount

        try:
            self.session.commit()
        except StaleDataError:
            # The UPDATE matched no row: check once whether it was deleted
            self.session.rollback()
            if not self.exists(order_id):
                logger.info("Order %s was deleted during update", order_id)
                return None
            raise OrderConflictError(order_id)

        return order

    def delete(self, order_id: int) -> bool:
        order = self.get_by_id(order_id)
        if order is None:
            return False

        self.session.delete(order)
        self.session.commit()
        return True
