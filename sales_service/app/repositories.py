from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import CustomerAlreadyExistsError
from .models import Customer, Order, User
from .schemas import CustomerFilter


def _contains(value: str) -> str:
    """LIKE pattern matching `value` literally anywhere in the column."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def filter(self, criteria: CustomerFilter) -> List[Customer]:
        """Customers matching every given criterion. An empty filter matches all customers."""
        query = self.db.query(Customer)
        if criteria.name:
            query = query.filter(Customer.name.ilike(_contains(criteria.name), escape="\\"))
        if criteria.email:
            query = query.filter(Customer.email.ilike(_contains(criteria.email), escape="\\"))
        return query.order_by(Customer.id).all()

    def create(self, name: str, email: str) -> Customer:
        """Creates a customer together with its linked user account."""
        customer = Customer(name=name, email=email)
        customer.user = User(email=email)
        self.db.add(customer)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise CustomerAlreadyExistsError()
        self.db.refresh(customer)
        return customer


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def find_by_customer_id(self, customer_id: int) -> List[Order]:
        return self.db.query(Order).filter(Order.customer_id == customer_id).all()

    def save(self, order: Order) -> Order:
        self.db.add(order)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        return order
