"""In-process memo store for finished generation results."""

import hashlib
import json
from typing import Any, Dict, Optional

from .config import GenerationConfig


def fingerprint(document: Any, config: GenerationConfig) -> str:
    """SHA-256 of the canonical JSON of (document, config)."""
    try:
        payload = json.dumps(
            {"document": document, "config": config.to_dict()},
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
    except ValueError:
        # 循環參照的文件無法序列化，改用 repr
        payload = repr((document, config.to_dict()))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class MemoryStore:
    """Append-only async key-value store; existing entries are never replaced."""

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    async def set(self, key: str, value: Any) -> bool:
        if key in self._entries:
            return False
        self._entries[key] = value
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
