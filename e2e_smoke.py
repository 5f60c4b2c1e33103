#!/usr/bin/env python3
"""
Sales service end-to-end smoke test against a running instance.

Run:
  uvicorn sales_service.app.main:app --port 8000
  python e2e_smoke.py

Optional env:
  SALES_BASE=http://localhost:8000
  SECRET_KEY=<same key as the service>
  DEBUG=1
"""

from __future__ import annotations

import os
import sys
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from jose import jwt


class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


def section_title(text: str):
    print(f"\n{Style.BLUE}{Style.BOLD}== {text} =={Style.RESET}")


def info(msg: str):
    print(f"{Style.CYAN}ℹ {msg}{Style.RESET}")


def ok(msg: str):
    print(f"{Style.GREEN}✔ {msg}{Style.RESET}")


def fail(msg: str):
    print(f"{Style.RED}✘ {msg}{Style.RESET}")


# =========================
# Config
# =========================

SALES_BASE = os.getenv("SALES_BASE", "http://localhost:8000")
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
DEBUG = os.getenv("DEBUG", "0").strip() in {"1", "true", "True", "YES", "yes"}

INITIAL_QUANTITY = 10


def debug(msg: str):
    if DEBUG:
        print(f"{Style.GRAY}… {msg}{Style.RESET}")


@dataclass
class TestResult:
    name: str
    success: bool
    details: str = ""


# =========================
# HTTP helpers
# =========================

def http(method: str, path: str, email: Optional[str] = None, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", 8)
    if email:
        token = jwt.encode({"sub": email}, SECRET_KEY, algorithm="HS256")
        kwargs.setdefault("headers", {})["Authorization"] = f"Bearer {token}"
    debug(f"{method} {path} json={kwargs.get('json')}")
    return requests.request(method, SALES_BASE + path, **kwargs)


def check(name: str, resp: requests.Response, expected: int) -> TestResult:
    success = resp.status_code == expected
    msg = f"expected HTTP {expected}, got {resp.status_code}"
    if not success:
        msg += f", body={resp.text}"
    (ok if success else fail)(f"{name}: {msg}")
    return TestResult(name, success, msg)


# =========================
# Scenario
# =========================

def run() -> List[TestResult]:
    results: List[TestResult] = []
    tag = uuid.uuid4().hex[:8]
    owner = f"owner-{tag}@example.com"
    other = f"other-{tag}@example.com"

    section_title("Seeding")
    results.append(check("Create owner", http("POST", "/api/v1/customers", json={"name": "Owner", "email": owner}), 201))
    results.append(check("Create other", http("POST", "/api/v1/customers", json={"name": "Other", "email": other}), 201))
    product: Dict[str, Any] = http("POST", "/api/v1/products", json={"name": f"Cake {tag}", "price": "12.50"}).json()
    info(f"Product {product['id']} created")
    http("POST", "/api/v1/stock/items", json={"product_id": product["id"], "quantity": INITIAL_QUANTITY})

    section_title("Rejected orders")
    results.append(check("Empty item list", http("POST", "/api/v1/orders", owner, json={"items": []}), 400))
    too_many = {"items": [{"product_id": product["id"], "quantity": INITIAL_QUANTITY + 1}]}
    results.append(check("Not enough stock", http("POST", "/api/v1/orders", owner, json=too_many), 400))

    section_title("Place order")
    resp = http("POST", "/api/v1/orders", owner, json={"items": [{"product_id": product["id"], "quantity": 3}]})
    results.append(check("Create order", resp, 201))
    order_id = resp.json().get("id")

    stock = http("GET", f"/api/v1/stock/{product['id']}").json()
    success = stock.get("quantity") == INITIAL_QUANTITY - 3
    msg = f"Expected quantity {INITIAL_QUANTITY - 3}, got {stock.get('quantity')}"
    (ok if success else fail)(msg)
    results.append(TestResult("Stock decremented", success, msg))

    section_title("Complete order")
    results.append(check("Other customer rejected", http("PUT", f"/api/v1/orders/{order_id}", other), 403))
    results.append(check("Owner completes", http("PUT", f"/api/v1/orders/{order_id}", owner), 200))
    results.append(check("Second completion rejected", http("PUT", f"/api/v1/orders/{order_id}", owner), 409))
    return results


def print_results(results: List[TestResult]) -> int:
    passed = sum(1 for r in results if r.success)
    print(f"\n{Style.BOLD}================ TEST RESULTS ================{Style.RESET}")
    for r in results:
        color = Style.GREEN if r.success else Style.RED
        print(f"{color}{'✅' if r.success else '❌'} {r.name}{Style.RESET}")
        if r.details:
            print(f"    {Style.DIM}{r.details}{Style.RESET}")
    print(f"Total tests: {len(results)}  |  Passed: {passed}  |  Failed: {len(results) - passed}")
    return 0 if passed == len(results) else 1


if __name__ == "__main__":
    try:
        sys.exit(print_results(run()))
    except requests.exceptions.RequestException as e:
        fail(f"Could not reach {SALES_BASE}: {e}")
        sys.exit(1)
