"""Business errors raised by the sales service.

Each error carries the HTTP status the API layer answers with.
"""


class SalesError(Exception):
    status_code = 400
    message = "Request rejected"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


# --- Not found ---
class OrderNotFoundError(SalesError):
    status_code = 404
    message = "Order not found"


class ProductNotFoundError(SalesError):
    status_code = 404
    message = "Product not found"


class StockNotFoundError(SalesError):
    status_code = 404
    message = "Stock not found for product"


class CustomerNotFoundError(SalesError):
    status_code = 404
    message = "Customer not found"


# --- Validation ---
class ItemListNotEmptyError(SalesError):
    status_code = 400
    message = "The item list must not be empty"


class StockNotEnoughError(SalesError):
    status_code = 400
    message = "Not enough stock for product"


# --- Authorization ---
class CustomerNotSameError(SalesError):
    status_code = 403
    message = "Only the customer who placed the order can change it"


# --- Conflict ---
class OrderAlreadyReceivedError(SalesError):
    status_code = 409
    message = "Order was already received"


class CustomerAlreadyExistsError(SalesError):
    status_code = 409
    message = "A customer with this email already exists"
