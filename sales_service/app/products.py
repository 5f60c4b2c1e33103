from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from .errors import ProductNotFoundError
from .models import Product


class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, product_id: int) -> bool:
        return self.db.get(Product, product_id) is not None

    def get_one(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise ProductNotFoundError()
        return product

    def create(self, name: str, price: Decimal) -> Product:
        product = Product(name=name, price=price)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def list_all(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.id).all()
