from typing import Dict, Optional, Set

from snapstore._src.models.store_path import PathInfo, StorePath
from snapstore._src.store.base import Store


class MemoryStore(Store):
    """A store that only lives in memory (`dummy://`).

    It has no filesystem presence, so profiles cannot point into it.
    """

    def __init__(self, store_dir: str = "/snapstore/store"):
        super().__init__(uri="dummy://", store_dir=store_dir)
        self._infos: Dict[StorePath, PathInfo] = {}
        self._contents: Dict[StorePath, bytes] = {}

    def query_all_valid_paths(self) -> Set[StorePath]:
        return set(self._infos)

    def _query_path_info(self, path: StorePath) -> Optional[PathInfo]:
        return self._infos.get(path)

    def _register_valid_path(self, info: PathInfo) -> None:
        self._infos[info.path] = info

    def _write_object(self, path: StorePath, contents: bytes) -> None:
        self._contents[path] = contents
