"""JSON file backed key-value store."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from coconut_nutrition.services.cache import KeyValueStore

_logger = logging.getLogger(__name__)


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Stores all keys in a single JSON document on disk."""

    path: Path

    def get_text(self, key: str) -> str | None:
        """Return the stored text for a key."""
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_text(self, key: str, value: str) -> None:
        """Replace the stored text for a key and rewrite the file."""
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)

    def _read_all(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            _logger.warning("Unreadable storage file %s; treating as empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}
