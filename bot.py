# bot.py
import asyncio
import logging
import aiohttp
from functools import partial
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.fsm.storage.memory import MemoryStorage

from config_reader import config, Settings
from handlers import cart_handlers
from models import create_session_maker, init_models
from services.catalog_api import CatalogClient
from services.cart_sessions import CartSessions
from services.cart_storage import JsonFileCartStorage
from services.sql_cart_storage import SqlCartStorage

logger = logging.getLogger("rocketshoes")


async def build_storage_factory(settings: Settings):
    """Returns (storage_factory, engine). The engine is None for the JSON file backend."""
    if settings.cart_storage_backend == "sql":
        if not settings.database_url:
            raise ValueError("CART_STORAGE_BACKEND=sql needs DATABASE_URL")
        engine, session_maker = create_session_maker(settings.database_url)
        await init_models(engine)
        return partial(SqlCartStorage, session_maker), engine
    if settings.cart_storage_backend != "json":
        raise ValueError(f"Unknown cart storage backend: {settings.cart_storage_backend}")
    return partial(JsonFileCartStorage, settings.cart_storage_dir), None


async def main():
    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        force=True,
    )
    if not config.bot_token:
        logger.error("BOT_TOKEN is not set, nothing to run.")
        return

    bot = Bot(token=config.bot_token, default=DefaultBotProperties(parse_mode="HTML"))
    dp = Dispatcher(storage=MemoryStorage())
    dp.include_router(cart_handlers.router)

    storage_factory, engine = await build_storage_factory(config)
    try:
        async with aiohttp.ClientSession() as session:
            catalog = CatalogClient(session, config.catalog_api_url, config.catalog_timeout)
            # Handlers receive the carts through the dispatcher workflow data
            dp["cart_sessions"] = CartSessions(
                catalog, storage_factory, config.cart_storage_key, ttl_minutes=config.cart_session_ttl_minutes,
            )
            logger.info(f"Catalog: {config.catalog_api_url}, storage: {config.cart_storage_backend}")
            await bot.delete_webhook(drop_pending_updates=True)
            await dp.start_polling(bot)
    finally:
        if engine is not None:
            await engine.dispose()
        await bot.session.close()

if __name__ == "__main__":
    asyncio.run(main())
