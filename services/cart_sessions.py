# services/cart_sessions.py
import asyncio
import logging
import time
from typing import Callable, Dict

from services.cart_service import CartService

logger = logging.getLogger(__name__)

SESSION_TTL_MINUTES = 20


class CartSessions:
    """
    One CartService per client session, each persisted under its own key.

    Sessions idle for longer than the TTL are dropped from memory; their carts are
    read back from the store on the next request.
    """

    def __init__(self, catalog, storage_factory: Callable[[str], object], namespace: str,
                 ttl_minutes: float = SESSION_TTL_MINUTES, clock: Callable[[], float] = time.monotonic):
        self.catalog = catalog
        self.storage_factory = storage_factory
        self.namespace = namespace
        self.ttl_seconds = ttl_minutes * 60
        self.clock = clock
        self._carts: Dict[int, CartService] = {}
        self._last_used: Dict[int, float] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._carts)

    def key_for(self, session_id: int) -> str:
        return f"{self.namespace}:{session_id}"

    async def get(self, session_id: int) -> CartService:
        now = self.clock()
        self._evict_idle(now)
        service = self._carts.get(session_id)
        if service is None:
            async with self._lock:
                if session_id not in self._carts:
                    storage = self.storage_factory(self.key_for(session_id))
                    self._carts[session_id] = await CartService.load(self.catalog, storage)
                    logger.info(f"Cart session {session_id} opened.")
                service = self._carts[session_id]
        self._last_used[session_id] = now
        return service

    def _evict_idle(self, now: float):
        expired = [
            session_id for session_id, last_used in self._last_used.items()
            if now - last_used > self.ttl_seconds and not self._carts[session_id].busy
        ]
        for session_id in expired:
            del self._carts[session_id]
            del self._last_used[session_id]
            logger.info(f"Cart session {session_id} expired after {self.ttl_seconds / 60:g} idle minutes.")
