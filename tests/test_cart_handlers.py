import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import CommandObject

from api_models import Product
from conftest import FakeCatalog, MemoryCartStorage
from handlers import cart_handlers
from keyboards.inline_keyboards import CartCallback, build_cart_kb
from services.cart_errors import OutOfStockError
from services.cart_sessions import CartSessions


def _message(user_id=42):
    msg = MagicMock()
    msg.from_user.id = user_id
    msg.answer = AsyncMock()
    return msg


def _callback(user_id=42):
    cb = MagicMock()
    cb.from_user.id = user_id
    cb.answer = AsyncMock()
    cb.message.edit_text = AsyncMock()
    return cb


@pytest.fixture
def cart_sessions(catalog):
    return CartSessions(catalog, lambda key: MemoryCartStorage(), "@RocketShoes:cart")


def test_render_empty_cart():
    assert "Your cart is empty" in cart_handlers.render_cart(())


def test_render_cart_escapes_titles():
    text = cart_handlers.render_cart((Product(id=5, amount=2, title="<Shoe & Co>", price=99.9),))

    assert "&lt;Shoe &amp; Co&gt;" in text
    assert "Quantity: 2" in text
    assert "Price: 99.9" in text


def test_cart_keyboard_has_controls_per_line():
    markup = build_cart_kb((Product(id=1, amount=2), Product(id=3, amount=1)))

    first_row = markup.inline_keyboard[0]
    assert [button.callback_data for button in first_row] == [
        "cart:dec:1", "cart:show:0", "cart:inc:1", "cart:remove:1",
    ]
    assert first_row[1].text == "2"
    assert len(markup.inline_keyboard) == 3
    assert CartCallback.unpack("cart:inc:3").product_id == 3


@pytest.mark.asyncio
async def test_add_command_adds_product_and_shows_cart(cart_sessions):
    msg = _message()

    await cart_handlers.cmd_add(msg, CommandObject(command="add", args="1"), cart_sessions=cart_sessions)

    service = await cart_sessions.get(42)
    assert [item.id for item in service.cart] == [1]
    text = msg.answer.await_args.args[0]
    assert "Shoe" in text


@pytest.mark.asyncio
async def test_add_command_reports_failure(cart_sessions):
    msg = _message()

    await cart_handlers.cmd_add(msg, CommandObject(command="add", args="99"), cart_sessions=cart_sessions)

    assert msg.answer.await_args_list[0].args[0] == "⚠️ Could not add the product"
    assert (await cart_sessions.get(42)).cart == ()


@pytest.mark.asyncio
@pytest.mark.parametrize("args", [None, "abc", "1 2"])
async def test_add_command_with_bad_arguments_shows_usage(cart_sessions, args):
    msg = _message()

    await cart_handlers.cmd_add(msg, CommandObject(command="add", args=args), cart_sessions=cart_sessions)

    msg.answer.assert_awaited_once_with(cart_handlers.USAGE)


@pytest.mark.asyncio
async def test_amount_command_sets_quantity(cart_sessions):
    service = await cart_sessions.get(42)
    await service.add_product(1)
    msg = _message()

    await cart_handlers.cmd_amount(msg, CommandObject(command="amount", args="1 4"), cart_sessions=cart_sessions)

    assert service.find(1).amount == 4


@pytest.mark.asyncio
async def test_decrement_at_one_keeps_item_and_hints_removal(cart_sessions):
    service = await cart_sessions.get(42)
    await service.add_product(1)
    cb = _callback()

    await cart_handlers.cb_change_amount(cb, CartCallback(action="dec", product_id=1), cart_sessions=cart_sessions)

    cb.answer.assert_awaited_once_with(cart_handlers.REMOVE_HINT)
    assert service.find(1).amount == 1


@pytest.mark.asyncio
async def test_increment_past_stock_alerts_user(cart_sessions):
    service = await cart_sessions.get(42)
    await service.add_product(3)
    cb = _callback()

    await cart_handlers.cb_change_amount(cb, CartCallback(action="inc", product_id=3), cart_sessions=cart_sessions)

    cb.answer.assert_awaited_once_with(OutOfStockError.message, show_alert=True)
    assert service.find(3).amount == 1


@pytest.mark.asyncio
async def test_remove_button_updates_message(cart_sessions):
    service = await cart_sessions.get(42)
    await service.add_product(2)
    cb = _callback()

    await cart_handlers.cb_remove_item(cb, CartCallback(action="remove", product_id=2), cart_sessions=cart_sessions)

    assert service.cart == ()
    cb.answer.assert_awaited_once_with()
    assert "Your cart is empty" in cb.message.edit_text.await_args.args[0]


@pytest.mark.asyncio
async def test_unchanged_message_edit_is_ignored(cart_sessions):
    cb = _callback()
    cb.message.edit_text.side_effect = TelegramBadRequest(method=MagicMock(), message="message is not modified")

    await cart_handlers.cb_show_cart(cb, cart_sessions=cart_sessions)

    cb.answer.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_overlapping_increment_taps_all_count():
    catalog = FakeCatalog(products={1: {"id": 1, "title": "Shoe"}}, stock={1: 5}, delay=0.01)
    sessions = CartSessions(catalog, lambda key: MemoryCartStorage(items=[{"id": 1, "amount": 1}]), "@RocketShoes:cart")
    service = await sessions.get(42)

    await asyncio.gather(*(
        cart_handlers.cb_change_amount(_callback(), CartCallback(action="inc", product_id=1), cart_sessions=sessions)
        for _ in range(2)
    ))

    assert service.find(1).amount == 3


@pytest.mark.asyncio
async def test_overlapping_decrement_taps_all_count():
    catalog = FakeCatalog(stock={1: 5}, delay=0.01)
    sessions = CartSessions(catalog, lambda key: MemoryCartStorage(items=[{"id": 1, "amount": 4}]), "@RocketShoes:cart")
    service = await sessions.get(42)

    await asyncio.gather(*(
        cart_handlers.cb_change_amount(_callback(), CartCallback(action="dec", product_id=1), cart_sessions=sessions)
        for _ in range(2)
    ))

    assert service.find(1).amount == 2
