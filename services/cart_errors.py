# services/cart_errors.py
# Error kinds of the cart. The engine returns them inside a CartResult instead of raising them.


class CartError(Exception):
    message = "Cart error"

    def __init__(self, product_id: int | None = None, detail: str | None = None):
        self.product_id = product_id
        self.detail = detail
        super().__init__(detail or self.message)

    def __str__(self) -> str:
        text = f"{type(self).__name__} (product {self.product_id})"
        return f"{text}: {self.detail}" if self.detail else text


class ProductAdditionError(CartError):
    """Catalog fetch failed or returned a record that does not identify the product."""
    message = "Could not add the product"


class ProductRemovalError(CartError):
    message = "Could not remove the product"


class ProductUpdateError(CartError):
    message = "Could not change the product quantity"


class OutOfStockError(CartError):
    message = "Requested quantity is out of stock"


class StockLookupError(OutOfStockError):
    """Stock could not be determined. Shown to the user exactly like OutOfStockError."""


class CartSaveError(CartError):
    """The cart changed in memory but the snapshot could not be written."""
    message = "Could not save the cart"
