from typing import Iterable, List

from sqlalchemy.orm import Session

from .models import Order, OrderItem
from .products import ProductService
from .schemas import OrderItemRequest
from .stock import StockService


class ItemService:
    """Turns requested items into order lines and takes them out of stock."""

    def __init__(self, db: Session, products: ProductService, stock: StockService):
        self.db = db
        self.products = products
        self.stock = stock

    def save_item_list(self, requested: Iterable[OrderItemRequest], order: Order) -> List[OrderItem]:
        # Runs inside the caller's transaction; nothing is committed here.
        items = []
        for req in requested:
            product = self.products.get_one(req.product_id)
            self.stock.decrement(product.id, req.quantity)
            item = OrderItem(product=product, quantity=req.quantity, price=product.price)
            order.items.append(item)
            items.append(item)
        self.db.flush()
        return items
