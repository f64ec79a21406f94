# services/sql_cart_storage.py
import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from models.cart_record import CartRecord
from services.cart_storage import CartStorageError

logger = logging.getLogger(__name__)


class SqlCartStorage:
    """Cart snapshots in the `cart_snapshots` table, one row per key."""

    def __init__(self, session_maker: sessionmaker, key: str):
        self.session_maker = session_maker
        self.key = key

    async def load(self) -> List[Dict[str, Any]] | None:
        try:
            async with self.session_maker() as session:
                record = await session.get(CartRecord, self.key)
        except SQLAlchemyError as e:
            logger.error(f"Cart {self.key}: cannot read snapshot: {e}")
            raise CartStorageError(str(e)) from e
        if record is None:
            return None
        if not isinstance(record.items, list):
            logger.warning(f"Cart {self.key}: stored snapshot is not a list, ignoring it.")
            return None
        return record.items

    async def save(self, items: List[Dict[str, Any]]) -> None:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    await session.merge(CartRecord(key=self.key, items=items))
        except SQLAlchemyError as e:
            logger.error(f"Cart {self.key}: write failed: {e}")
            raise CartStorageError(str(e)) from e
