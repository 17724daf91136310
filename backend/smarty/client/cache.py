"""
Device-local key-value cache for the notes view (notes, filters, sort).

Categories and chat history are never written here.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class JsonStateCache:
    """A JSON document on disk holding a flat mapping of keys to values."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable state cache %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.load().get(key, default)

    def save(self, state: Dict[str, Any]) -> None:
        """Merge ``state`` into the stored document."""
        data = self.load()
        data.update(state)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, default=str), encoding="utf-8")
        tmp.replace(self.path)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
