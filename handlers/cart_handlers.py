# handlers/cart_handlers.py
import logging
from typing import Sequence
from aiogram import Router, F, html
from aiogram.types import Message, CallbackQuery
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.exceptions import TelegramBadRequest

from api_models import Product
from services.cart_service import CartOutcome, CartResult
from services.cart_sessions import CartSessions
from keyboards.inline_keyboards import CartCallback, build_cart_kb

logger = logging.getLogger(__name__)
router = Router()

USAGE = (
    "/cart - show the cart\n"
    "/add <code>&lt;product id&gt;</code> - add one item\n"
    "/remove <code>&lt;product id&gt;</code> - remove a product\n"
    "/amount <code>&lt;product id&gt; &lt;quantity&gt;</code> - set the quantity"
)
REMOVE_HINT = "Use ❌ to remove the product."


def render_cart(cart_items: Sequence[Product]) -> str:
    if not cart_items:
        return "🛒 Your cart is empty.\n\nUse /add <code>&lt;product id&gt;</code> to add a product."
    text_lines = [f"🛒 <b>Your cart</b> ({len(cart_items)} products):\n"]
    for i, item in enumerate(cart_items, 1):
        title = item.display('title') or item.display('name') or f"Product {item.id}"
        text_lines.append(f"<b>{i}. {html.quote(str(title))}</b> (<code>{item.id}</code>)")
        price = item.display('price')
        if price is not None:
            text_lines.append(f"   Price: {html.quote(str(price))}")
        text_lines.append(f"   Quantity: {item.amount}\n")
    return "\n".join(text_lines)


def _parse_ints(command: CommandObject, count: int) -> list[int] | None:
    parts = (command.args or "").split()
    if len(parts) != count: return None
    try:
        return [int(part) for part in parts]
    except ValueError:
        return None


async def _reply_with_result(message: Message, result: CartResult):
    if result.message:
        await message.answer(f"⚠️ {result.message}")
    elif result.outcome == CartOutcome.unchanged:
        await message.answer(REMOVE_HINT)
    await message.answer(render_cart(result.cart), reply_markup=build_cart_kb(result.cart))


async def _edit_cart_message(cb: CallbackQuery, cart_items: Sequence[Product]):
    if cb.message is None: return
    try:
        await cb.message.edit_text(render_cart(cart_items), reply_markup=build_cart_kb(cart_items))
    except TelegramBadRequest as e: # "message is not modified" and the like
        logger.debug(f"Cart message for {cb.from_user.id} not edited: {e}")


async def _answer_with_result(cb: CallbackQuery, result: CartResult):
    if result.message:
        await cb.answer(result.message, show_alert=True)
    elif result.outcome == CartOutcome.unchanged:
        await cb.answer(REMOVE_HINT)
    else:
        await cb.answer()
    await _edit_cart_message(cb, result.cart)


# --- Commands ---

@router.message(CommandStart())
async def cmd_start(msg: Message):
    await msg.answer(f"👋 Welcome to RocketShoes!\n\n{USAGE}")

@router.message(Command("cart"))
async def cmd_cart(msg: Message, cart_sessions: CartSessions):
    service = await cart_sessions.get(msg.from_user.id)
    await msg.answer(render_cart(service.cart), reply_markup=build_cart_kb(service.cart))

@router.message(Command("add"))
async def cmd_add(msg: Message, command: CommandObject, cart_sessions: CartSessions):
    args = _parse_ints(command, 1)
    if args is None:
        await msg.answer(USAGE)
        return
    service = await cart_sessions.get(msg.from_user.id)
    await _reply_with_result(msg, await service.add_product(args[0]))

@router.message(Command("remove"))
async def cmd_remove(msg: Message, command: CommandObject, cart_sessions: CartSessions):
    args = _parse_ints(command, 1)
    if args is None:
        await msg.answer(USAGE)
        return
    service = await cart_sessions.get(msg.from_user.id)
    await _reply_with_result(msg, await service.remove_product(args[0]))

@router.message(Command("amount"))
async def cmd_amount(msg: Message, command: CommandObject, cart_sessions: CartSessions):
    args = _parse_ints(command, 2)
    if args is None:
        await msg.answer(USAGE)
        return
    service = await cart_sessions.get(msg.from_user.id)
    await _reply_with_result(msg, await service.update_product_amount(args[0], args[1]))

# --- Cart buttons ---

@router.callback_query(CartCallback.filter(F.action == "show"))
async def cb_show_cart(cb: CallbackQuery, cart_sessions: CartSessions):
    service = await cart_sessions.get(cb.from_user.id)
    await cb.answer()
    await _edit_cart_message(cb, service.cart)

@router.callback_query(CartCallback.filter(F.action.in_({"inc", "dec"})))
async def cb_change_amount(cb: CallbackQuery, callback_data: CartCallback, cart_sessions: CartSessions):
    service = await cart_sessions.get(cb.from_user.id)
    # The engine reads the current quantity under its lock, so overlapping taps all count
    if callback_data.action == "inc":
        result = await service.add_product(callback_data.product_id)
    else:
        result = await service.decrement_product(callback_data.product_id)
    await _answer_with_result(cb, result)

@router.callback_query(CartCallback.filter(F.action == "remove"))
async def cb_remove_item(cb: CallbackQuery, callback_data: CartCallback, cart_sessions: CartSessions):
    service = await cart_sessions.get(cb.from_user.id)
    result = await service.remove_product(callback_data.product_id)
    await _answer_with_result(cb, result)
