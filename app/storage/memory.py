from typing import Any, Optional
import copy
import logging

from app.storage.base import KeyPathStore, split_path

logger = logging.getLogger(__name__)

class MemoryKeyPathStore(KeyPathStore):
    """Демо-режим: дерево словарей в памяти процесса"""

    name = "memory"

    def __init__(self):
        self._root: dict = {}

    async def get(self, path: str) -> Optional[Any]:
        node: Any = self._root
        for part in split_path(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        # копия, чтобы вызывающий код не менял хранилище мимо set()
        return copy.deepcopy(node)

    async def set(self, path: str, value: Any) -> None:
        parts = split_path(path)
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

    async def close(self) -> None:
        self._root.clear()
