import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import config
from .auth import get_current_caller
from .database import Base, engine, get_db
from .errors import SalesError
from .mail import MailSender
from .messaging.producer import RabbitMQProducer
from .orders import Caller, OrderService
from .products import ProductService
from .repositories import CustomerRepository
from .schemas import (
    CustomerCreate,
    CustomerFilter,
    CustomerResponse,
    OrderRequest,
    OrderResponse,
    ProductCreate,
    ProductResponse,
    StockAdd,
    StockResponse,
)
from .stock import StockService

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Create database tables on startup if they don't exist.
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Sales Service")

_mailer = MailSender()
_producer = RabbitMQProducer() if config.RABBITMQ_HOST else None


def get_mailer():
    return _mailer


def get_publisher():
    return _producer


def get_order_service(
    db: Session = Depends(get_db),
    mailer=Depends(get_mailer),
    publisher=Depends(get_publisher),
) -> OrderService:
    return OrderService(db, mailer=mailer, publisher=publisher)


@app.exception_handler(SalesError)
async def handle_sales_error(request: Request, exc: SalesError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
def root():
    """Health check endpoint."""
    return {"message": "Sales service is running"}


# --- Orders ---
@app.get("/api/v1/orders", response_model=List[OrderResponse])
def search_orders(
    name: Optional[str] = None,
    email: Optional[str] = None,
    service: OrderService = Depends(get_order_service),
):
    orders = service.search(CustomerFilter(name=name, email=email))
    return [OrderResponse.from_order(o) for o in orders]


@app.get("/api/v1/orders/finished", response_model=List[OrderResponse])
def search_finished_orders(
    name: Optional[str] = None,
    email: Optional[str] = None,
    service: OrderService = Depends(get_order_service),
):
    orders = service.search_finished(CustomerFilter(name=name, email=email))
    return [OrderResponse.from_order(o) for o in orders]


@app.get("/api/v1/orders/pending", response_model=List[OrderResponse])
def search_pending_orders(
    name: Optional[str] = None,
    email: Optional[str] = None,
    service: OrderService = Depends(get_order_service),
):
    orders = service.search_pending(CustomerFilter(name=name, email=email))
    return [OrderResponse.from_order(o) for o in orders]


@app.get("/api/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, service: OrderService = Depends(get_order_service)):
    return OrderResponse.from_order(service.get_one(order_id))


# Places an order for the authenticated customer.
@app.post("/api/v1/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    req: OrderRequest,
    request: Request,
    response: Response,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
):
    order = service.create(req, caller)
    response.headers["Location"] = str(request.url_for("get_order", order_id=order.id))
    return OrderResponse.from_order(order)


# Confirms that the customer received the order.
@app.put("/api/v1/orders/{order_id}", response_model=OrderResponse)
def complete_order(
    order_id: int,
    caller: Caller = Depends(get_current_caller),
    service: OrderService = Depends(get_order_service),
):
    return OrderResponse.from_order(service.complete(order_id, caller))


# --- Customers ---
@app.post("/api/v1/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(req: CustomerCreate, db: Session = Depends(get_db)):
    return CustomerRepository(db).create(req.name, req.email)


# --- Products ---
@app.get("/api/v1/products", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db)):
    return ProductService(db).list_all()


@app.post("/api/v1/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(req: ProductCreate, db: Session = Depends(get_db)):
    return ProductService(db).create(req.name, req.price)


# --- Stock ---
@app.get("/api/v1/stock/", response_model=List[StockResponse])
def list_stock(db: Session = Depends(get_db)):
    """Retrieves every stock record with its current quantity."""
    return StockService(db).list_all()


@app.get("/api/v1/stock/{product_id}", response_model=StockResponse)
def get_stock(product_id: int, db: Session = Depends(get_db)):
    return StockService(db).get_by_product_id(product_id)


@app.post("/api/v1/stock/items", response_model=StockResponse)
def add_stock(req: StockAdd, db: Session = Depends(get_db)):
    """Adds stock for a product, creating the record when it does not exist yet."""
    return StockService(db).add(req.product_id, req.quantity)
