import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional

_logger = logging.getLogger(__name__)


class LocalOrderCache:
    """Mock orders kept on the shopper's machine while the store is unreachable.

    This is never the source of truth: entries live here only until
    ``OrderSubmitter.sync_local_orders`` gets the server to accept them.
    The file holds a JSON list of order dicts, newest first.
    """

    def __init__(self, path: str):
        self.path = path
        self._orders: List[Dict[str, Any]] = []
        self._loaded = False

    def load(self) -> List[Dict[str, Any]]:
        self._orders = []
        if os.path.exists(self.path):
            try:
                with open(self.path, "r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, ValueError) as e:
                _logger.warning("Ignoring unreadable local order cache | path=%s err=%s", self.path, e)
                data = []
            if isinstance(data, list):
                self._orders = [o for o in data if isinstance(o, dict) and o.get("id")]
        self._loaded = True
        return self.list()

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".orders-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._orders, fh, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def save(self, order: Dict[str, Any]) -> None:
        self._ensure_loaded()
        self._orders = [o for o in self._orders if o["id"] != order["id"]]
        self._orders.insert(0, dict(order))
        self._flush()
        _logger.info("Stored local order | order_id=%s", order["id"])

    def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        self._ensure_loaded()
        for order in self._orders:
            if order["id"] == order_id:
                return dict(order)
        return None

    def list(self) -> List[Dict[str, Any]]:
        self._ensure_loaded()
        return [dict(o) for o in self._orders]

    def invalidate(self, order_id: str) -> bool:
        self._ensure_loaded()
        remaining = [o for o in self._orders if o["id"] != order_id]
        if len(remaining) == len(self._orders):
            return False
        self._orders = remaining
        self._flush()
        return True

    def clear(self) -> None:
        self._orders = []
        self._loaded = True
        if os.path.exists(self.path):
            os.remove(self.path)
