# api_models.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

# --- Catalog payloads ---

class CatalogProduct(BaseModel):
    """Product record as the catalog returns it. Display fields (title, price, image) stay opaque."""
    model_config = ConfigDict(extra="allow", frozen=True)
    id: int

class Stock(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)
    id: Optional[int] = None
    amount: int = Field(..., ge=0)

# --- Cart ---

class Product(CatalogProduct):
    """A cart line item: the catalog record plus the quantity held in the cart."""
    amount: int = Field(..., ge=1)

    def display(self, field: str, default=None):
        return (self.model_extra or {}).get(field, default)
