# services/cart_service.py
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from api_models import Product
from services.cart_errors import (
    CartError, CartSaveError, OutOfStockError, ProductAdditionError,
    ProductRemovalError, ProductUpdateError, StockLookupError,
)
from services.cart_storage import CartStorageError

logger = logging.getLogger(__name__)

Cart = Tuple[Product, ...]


class CartOutcome(str, Enum):
    updated = "updated"     # mutation applied and written through
    unchanged = "unchanged" # non-positive target quantity, nothing was touched
    failed = "failed"


@dataclass(frozen=True)
class CartResult:
    outcome: CartOutcome
    cart: Cart
    error: Optional[CartError] = None
    save_error: Optional[CartSaveError] = None

    @property
    def ok(self) -> bool:
        return self.outcome != CartOutcome.failed

    @property
    def message(self) -> str | None:
        """Text to show the user, if anything went wrong."""
        problem = self.error or self.save_error
        return problem.message if problem else None


# --- Serialization ---

def dump_cart(cart: Cart) -> List[Dict[str, Any]]:
    return [item.model_dump(mode="json") for item in cart]

def parse_cart(items: Any) -> Cart | None:
    """Validates a stored snapshot. Returns None if it is not a well-formed cart."""
    if not isinstance(items, list): return None
    try:
        cart = tuple(Product.model_validate(item) for item in items)
    except ValidationError as e:
        logger.warning(f"Stored cart rejected: {e.error_count()} validation error(s)")
        return None
    if len({item.id for item in cart}) != len(cart):
        logger.warning("Stored cart rejected: duplicate product ids")
        return None
    return cart

async def load_cart(storage) -> Cart:
    try:
        items = await storage.load()
    except CartStorageError as e:
        logger.error(f"Cart storage unavailable at startup, starting empty: {e}")
        return ()
    if items is None: return ()
    cart = parse_cart(items)
    return cart if cart is not None else ()


class CartService:
    """
    Owns one cart and keeps it in sync with the catalog and the durable store.

    Mutations are serialized by a lock held across the catalog call, the state change
    and the store write. Readers get an immutable tuple, so they see either the state
    before a mutation or after it.
    """

    def __init__(self, catalog, storage, items: Iterable[Product] = ()):
        self.catalog = catalog
        self.storage = storage
        self._cart: Cart = tuple(items)
        self._lock = asyncio.Lock()

    @classmethod
    async def load(cls, catalog, storage) -> "CartService":
        """Starts from the stored snapshot, or from an empty cart if there is none. Stock is not re-checked."""
        cart = await load_cart(storage)
        logger.info(f"Cart loaded with {len(cart)} product(s).")
        return cls(catalog, storage, cart)

    # --- Reading ---

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def size(self) -> int:
        return len(self._cart)

    def find(self, product_id: int) -> Product | None:
        return next((item for item in self._cart if item.id == product_id), None)

    def amounts(self) -> Dict[int, int]:
        return {item.id: item.amount for item in self._cart}

    @property
    def busy(self) -> bool:
        """True while a mutation is in progress."""
        return self._lock.locked()

    # --- Mutations ---

    async def add_product(self, product_id: int) -> CartResult:
        async with self._lock:
            existing = self.find(product_id)
            if existing is not None:
                return await self._set_amount(product_id, existing.amount + 1)

            catalog_product = await self.catalog.get_product(product_id)
            if catalog_product is None:
                return self._fail(ProductAdditionError(product_id, "catalog returned nothing"))
            if catalog_product.id != product_id:
                return self._fail(ProductAdditionError(product_id, f"catalog returned product {catalog_product.id}"))

            item = Product.model_validate({**catalog_product.model_dump(), "amount": 1})
            return await self._commit(self._cart + (item,), f"added product {product_id}")

    async def remove_product(self, product_id: int) -> CartResult:
        async with self._lock:
            if self.find(product_id) is None:
                return self._fail(ProductRemovalError(product_id, "not in cart"))
            new_cart = tuple(item for item in self._cart if item.id != product_id)
            return await self._commit(new_cart, f"removed product {product_id}")

    async def update_product_amount(self, product_id: int, amount: int) -> CartResult:
        if amount <= 0:
            return CartResult(CartOutcome.unchanged, self._cart)
        async with self._lock:
            return await self._set_amount(product_id, amount)

    async def decrement_product(self, product_id: int) -> CartResult:
        """Lowers the quantity by one, reading it under the lock. At quantity 1 this is the `unchanged` no-op."""
        async with self._lock:
            existing = self.find(product_id)
            if existing is None:
                return self._fail(ProductUpdateError(product_id, "not in cart"))
            return await self._set_amount(product_id, existing.amount - 1)

    # --- Internals (caller holds the lock) ---

    async def _set_amount(self, product_id: int, amount: int) -> CartResult:
        if amount <= 0:
            return CartResult(CartOutcome.unchanged, self._cart)
        if self.find(product_id) is None:
            return self._fail(ProductUpdateError(product_id, "not in cart"))

        stock = await self.catalog.get_stock(product_id)
        if stock is None:
            return self._fail(StockLookupError(product_id, "stock unknown"))
        if amount > stock.amount:
            return self._fail(OutOfStockError(product_id, f"requested {amount}, available {stock.amount}"))

        new_cart = tuple(
            item.model_copy(update={"amount": amount}) if item.id == product_id else item
            for item in self._cart
        )
        return await self._commit(new_cart, f"product {product_id} amount -> {amount}")

    async def _commit(self, new_cart: Cart, event: str) -> CartResult:
        save_error = None
        try:
            await self.storage.save(dump_cart(new_cart))
        except CartStorageError as e:
            # In-memory state stays authoritative for the rest of the process, no rollback
            logger.error(f"Cart: {event}, but the snapshot was not saved: {e}")
            save_error = CartSaveError(detail=str(e))
        self._cart = new_cart
        logger.info(f"Cart: {event}.")
        return CartResult(CartOutcome.updated, new_cart, save_error=save_error)

    def _fail(self, error: CartError) -> CartResult:
        logger.warning(f"Cart: {error}")
        return CartResult(CartOutcome.failed, self._cart, error=error)
