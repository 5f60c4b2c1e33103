"""Order service: searching, placing and confirming customer orders."""

import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy.orm import Session

from .errors import (
    CustomerNotFoundError,
    CustomerNotSameError,
    ItemListNotEmptyError,
    OrderNotFoundError,
    ProductNotFoundError,
    StockNotEnoughError,
    StockNotFoundError,
)
from .items import ItemService
from .mail import send_receipt
from .models import Order, OrderStatus
from .products import ProductService
from .repositories import CustomerRepository, OrderRepository, UserRepository
from .schemas import CustomerFilter, OrderRequest
from .stock import StockService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """The authenticated identity making a request."""
    email: str


class OrderService:
    def __init__(self, db: Session, mailer=None, publisher=None):
        self.db = db
        self.mailer = mailer
        self.publisher = publisher
        self.customers = CustomerRepository(db)
        self.users = UserRepository(db)
        self.orders = OrderRepository(db)
        self.products = ProductService(db)
        self.stock = StockService(db)
        self.items = ItemService(db, self.products, self.stock)

    # --- Queries ---
    def search(self, criteria: CustomerFilter) -> List[Order]:
        return self._check_not_empty(self._filter_by_customer(criteria))

    def search_finished(self, criteria: CustomerFilter) -> List[Order]:
        orders = self._check_not_empty(self._filter_by_customer(criteria))
        return [o for o in orders if o.status == OrderStatus.COMPLETED]

    def search_pending(self, criteria: CustomerFilter) -> List[Order]:
        orders = self._check_not_empty(self._filter_by_customer(criteria))
        return [o for o in orders if o.status == OrderStatus.PENDING]

    def get_one(self, order_id: int) -> Order:
        order = self.orders.find_by_id(order_id)
        if not order:
            raise OrderNotFoundError()
        return order

    # --- Commands ---
    def create(self, request: OrderRequest, caller: Caller) -> Order:
        """
        Places a new PENDING order for the caller.

        The order, its items and the stock decrements are committed together;
        any failure rolls all of them back. The receipt email and the
        ``order.created`` event are sent after the commit and never fail the order.
        """
        self._check_valid_order(request)

        user = self.users.find_by_email(caller.email)
        if not user:
            raise CustomerNotFoundError()
        customer = user.customer

        order = Order(customer=customer, status=OrderStatus.PENDING)
        self.db.add(order)
        try:
            items = self.items.save_item_list(request.items, order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info("Order %s created for customer %s", order.id, customer.id)

        send_receipt(self.mailer, caller.email, customer.name, items)
        self._publish("order.created", {
            "order_id": order.id,
            "customer_id": customer.id,
            "items": [
                {"product_id": i.product_id, "quantity": i.quantity, "price": str(i.price)}
                for i in order.items
            ],
            "total": str(order.total),
        })
        return order

    def complete(self, order_id: int, caller: Caller) -> Order:
        """Marks an order as received. Only its own customer may do it, and only once."""
        order = self.get_one(order_id)

        if order.customer.email != caller.email:
            raise CustomerNotSameError()
        order.transition_to(OrderStatus.COMPLETED)

        order = self.orders.save(order)
        logger.info("Order %s completed", order.id)
        self._publish("order.completed", {"order_id": order.id, "customer_id": order.customer_id})
        return order

    # --- Helpers ---
    def _check_valid_order(self, request: OrderRequest) -> None:
        if not request.items:
            raise ItemListNotEmptyError()

        for item in request.items:
            if item.product_id is None or not self.products.exists(item.product_id):
                raise ProductNotFoundError()
            if not self.stock.exists(item.product_id):
                raise StockNotFoundError()
            if self.stock.get_by_product_id(item.product_id).quantity - item.quantity < 0:
                raise StockNotEnoughError()

    def _filter_by_customer(self, criteria: CustomerFilter) -> List[Order]:
        orders = []
        for customer in self.customers.filter(criteria):
            orders.extend(self.orders.find_by_customer_id(customer.id))
        orders.sort(key=lambda o: o.id)
        return orders

    @staticmethod
    def _check_not_empty(orders: List[Order]) -> List[Order]:
        if not orders:
            raise OrderNotFoundError()
        return orders

    def _publish(self, routing_key: str, message: dict) -> None:
        if self.publisher is None:
            return
        self.publisher.publish(routing_key=routing_key, message=message)
