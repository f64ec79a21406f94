# keyboards/inline_keyboards.py
from typing import Sequence
from aiogram.utils.keyboard import InlineKeyboardBuilder
from aiogram.filters.callback_data import CallbackData
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from api_models import Product

# --- CallbackData factories ---
class CartCallback(CallbackData, prefix="cart"):
    action: str # "inc", "dec", "remove", "show"
    product_id: int = 0

# --- Keyboards ---

def build_cart_kb(cart_items: Sequence[Product]) -> InlineKeyboardMarkup:
    """One row per line item: decrement, current amount, increment, remove."""
    builder = InlineKeyboardBuilder()
    for item in cart_items:
        builder.row(
            InlineKeyboardButton(text="➖", callback_data=CartCallback(action="dec", product_id=item.id).pack()),
            InlineKeyboardButton(text=str(item.amount), callback_data=CartCallback(action="show").pack()),
            InlineKeyboardButton(text="➕", callback_data=CartCallback(action="inc", product_id=item.id).pack()),
            InlineKeyboardButton(text="❌", callback_data=CartCallback(action="remove", product_id=item.id).pack()),
        )
    builder.row(InlineKeyboardButton(text="🔄 Refresh", callback_data=CartCallback(action="show").pack()))
    return builder.as_markup()
