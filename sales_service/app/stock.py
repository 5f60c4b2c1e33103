import logging
from typing import List

from sqlalchemy.orm import Session

from .errors import ProductNotFoundError, StockNotEnoughError, StockNotFoundError
from .models import Product, Stock

logger = logging.getLogger(__name__)


class StockService:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, product_id: int) -> bool:
        return self._find(product_id) is not None

    def get_by_product_id(self, product_id: int) -> Stock:
        stock = self._find(product_id)
        if not stock:
            raise StockNotFoundError()
        return stock

    def list_all(self) -> List[Stock]:
        return self.db.query(Stock).order_by(Stock.product_id).all()

    def add(self, product_id: int, quantity: int) -> Stock:
        """
        Adds stock for a product (upsert).
        - If a stock record exists, quantity is added.
        - Otherwise a new record is created.
        """
        if self.db.get(Product, product_id) is None:
            raise ProductNotFoundError()

        stock = self._find(product_id)
        if stock:
            stock.quantity += quantity
        else:
            stock = Stock(product_id=product_id, quantity=quantity)
            self.db.add(stock)

        self.db.commit()
        self.db.refresh(stock)
        logger.info("Stock for product %s is now %s", product_id, stock.quantity)
        return stock

    def decrement(self, product_id: int, quantity: int) -> None:
        """
        Takes ``quantity`` units out of stock in a single conditional UPDATE,
        so concurrent orders can never drive the quantity below zero.
        Does not commit; the caller owns the transaction.
        """
        updated = (
            self.db.query(Stock)
            .filter(Stock.product_id == product_id, Stock.quantity >= quantity)
            .update({Stock.quantity: Stock.quantity - quantity}, synchronize_session="fetch")
        )
        if updated == 0:
            if not self.exists(product_id):
                raise StockNotFoundError()
            raise StockNotEnoughError()

    def _find(self, product_id: int):
        return self.db.query(Stock).filter(Stock.product_id == product_id).first()
