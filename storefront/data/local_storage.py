"""Device-scoped key/value storage backed by one JSON document per device."""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from storefront.utils.settings import LOCAL_STORAGE_DIR
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CART_KEY = "cart"
LAST_ORDER_KEY = "lastOrder"

_DEVICE_ID = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


class LocalStorage:
    """
    JSON blobs keyed by name, persisted per device.

    Reads and writes are synchronous; a document that can't be parsed is
    logged and treated as empty.
    """

    def __init__(self, device_id: str, root: Path | str | None = None):
        if not _DEVICE_ID.match(device_id or ""):
            raise ValueError(f"Invalid device id: {device_id!r}")
        self.device_id = device_id
        self.root = Path(root or LOCAL_STORAGE_DIR)
        self.path = self.root / f"{device_id}.json"

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Unreadable local storage for device {self.device_id}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Local storage for device {self.device_id} is not an object, ignoring")
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=f".{self.device_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key: str) -> Any | None:
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
