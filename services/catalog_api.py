# services/catalog_api.py
import logging
import asyncio
import aiohttp
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from api_models import CatalogProduct, Stock

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CatalogClient:
    """
    HTTP client of the product catalog.

    Every failure (timeout, network error, non-2xx status, a body that is not JSON
    or does not validate) is logged and returned as None, never as a partial record.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str, timeout: float = 10.0):
        self.session = session
        self.base_url = base_url.rstrip('/')
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_product(self, product_id: int) -> CatalogProduct | None:
        return await self._fetch(f"/products/{product_id}", CatalogProduct)

    async def get_stock(self, product_id: int) -> Stock | None:
        return await self._fetch(f"/stock/{product_id}", Stock)

    async def _fetch(self, path: str, model: Type[ModelT]) -> ModelT | None:
        data = await self._get_json(path)
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Catalog {path}: unexpected payload: {e.error_count()} validation error(s)")
            return None

    async def _get_json(self, path: str) -> Any | None:
        url = f"{self.base_url}{path}"
        try:
            async with self.session.get(url, timeout=self.timeout) as response:
                if response.status == 404:
                    logger.warning(f"Catalog {path}: not found")
                    return None
                response.raise_for_status()
                return await response.json(content_type=None)
        except asyncio.TimeoutError:
            logger.error(f"Catalog {path}: timed out after {self.timeout.total}s")
        except aiohttp.ClientError as e:
            logger.error(f"Catalog {path}: request failed: {e}")
        except ValueError as e:
            logger.error(f"Catalog {path}: body is not JSON: {e}")
        return None
