# services/cart_storage.py
import logging
import json
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class CartStorageError(Exception):
    """The durable store could not be read or written."""


def _key_to_filename(key: str) -> str:
    safe = re.sub(r'[^A-Za-z0-9_.-]+', '_', key).strip('_.')
    return f"{safe or 'cart'}.json"


class JsonFileCartStorage:
    """Keeps one cart snapshot per key as a JSON file; every save overwrites the whole file."""

    def __init__(self, directory: str | Path, key: str):
        self.directory = Path(directory)
        self.key = key

    @property
    def filepath(self) -> Path:
        return self.directory / _key_to_filename(self.key)

    async def load(self) -> List[Dict[str, Any]] | None:
        filepath = self.filepath
        if not filepath.exists(): return None
        try:
            with open(filepath, 'r', encoding='utf-8') as f: cart_data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Cart {self.key}: {filepath} is not valid JSON: {e}")
            return None
        except OSError as e:
            logger.error(f"Cart {self.key}: cannot read {filepath}: {e}")
            raise CartStorageError(str(e)) from e
        if not isinstance(cart_data, dict) or not isinstance(cart_data.get("items"), list):
            logger.warning(f"Cart {self.key}: {filepath} has no item list, ignoring it.")
            return None
        return cart_data["items"]

    async def save(self, items: List[Dict[str, Any]]) -> None:
        cart_data = {"key": self.key, "items": items, "last_modified": datetime.now().isoformat()}
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Write to a temp file and replace, so a half-written cart never lands on disk
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=".cart-", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(cart_data, f, ensure_ascii=False, indent=4)
                os.replace(tmp_path, self.filepath)
            except BaseException:
                if os.path.exists(tmp_path): os.remove(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Cart {self.key}: write failed: {e}")
            raise CartStorageError(str(e)) from e
