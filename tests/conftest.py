"""Pytest fixtures: an in-memory catalog and an in-memory cart store."""

import asyncio
import copy

import pytest

from api_models import CatalogProduct, Stock
from services.cart_storage import CartStorageError


class FakeCatalog:
    def __init__(self, products=None, stock=None, delay: float = 0):
        self.products = products or {}
        self.stock = stock or {}
        self.delay = delay
        self.product_calls = []
        self.stock_calls = []

    async def get_product(self, product_id):
        self.product_calls.append(product_id)
        if self.delay: await asyncio.sleep(self.delay)
        data = self.products.get(product_id)
        return CatalogProduct.model_validate(data) if data is not None else None

    async def get_stock(self, product_id):
        self.stock_calls.append(product_id)
        if self.delay: await asyncio.sleep(self.delay)
        amount = self.stock.get(product_id)
        return Stock(id=product_id, amount=amount) if amount is not None else None


class MemoryCartStorage:
    def __init__(self, items=None, fail_saves: bool = False, fail_loads: bool = False):
        self.items = items
        self.fail_saves = fail_saves
        self.fail_loads = fail_loads
        self.saves = []

    async def load(self):
        if self.fail_loads:
            raise CartStorageError("disk unreadable")
        return copy.deepcopy(self.items)

    async def save(self, items):
        if self.fail_saves:
            raise CartStorageError("disk full")
        self.items = copy.deepcopy(items)
        self.saves.append(self.items)


@pytest.fixture
def catalog():
    return FakeCatalog(
        products={
            1: {"id": 1, "title": "Shoe", "price": 139.9, "image": "https://img/1.jpg"},
            2: {"id": 2, "title": "Sneaker", "price": 179.9, "image": "https://img/2.jpg"},
            3: {"id": 3, "title": "Boot", "price": 99.9, "image": "https://img/3.jpg"},
        },
        stock={1: 5, 2: 2, 3: 1},
    )


@pytest.fixture
def storage():
    return MemoryCartStorage()
