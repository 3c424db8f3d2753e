import logging
import os
from pathlib import Path
from typing import Optional, Set

import yaml
from pydantic import ValidationError

from snapstore._src.exceptions import StoreError
from snapstore._src.models.store_path import PathInfo, StorePath
from snapstore._src.store.base import LocalFSStore
from snapstore._src.utils import atomic_write_text, ensure_dir, short_uuid


logger = logging.getLogger(__name__)


class LocalStore(LocalFSStore):
    """A store rooted in a local directory.

    Layout under `root`:

        store/<hash>-<name>                   object contents
        var/snapstore/db/info/<hash>-<name>.yaml  path metadata

    A path is valid once its metadata document exists. Metadata is
    written after the object, so a valid path always has its contents.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser().resolve()
        super().__init__(uri=f"local?root={self.root}", store_dir=str(self.root / "store"))
        self.info_dir = self.root / "var" / "snapstore" / "db" / "info"
        ensure_dir(self.store_dir)
        ensure_dir(self.info_dir)

    def _info_file(self, path: StorePath) -> Path:
        return self.info_dir / f"{path.base_name}.yaml"

    def query_all_valid_paths(self) -> Set[StorePath]:
        paths = set()
        for entry in self.info_dir.glob("*.yaml"):
            try:
                paths.add(StorePath(entry.name[:-len(".yaml")]))
            except ValidationError:
                logger.warning("ignoring stray file %s in the store database", entry)
        return paths

    def _query_path_info(self, path: StorePath) -> Optional[PathInfo]:
        info_file = self._info_file(path)
        if not info_file.exists():
            return None
        try:
            raw_info = yaml.safe_load(info_file.read_text())
            return PathInfo.model_validate(raw_info)
        except (yaml.YAMLError, ValidationError) as e:
            raise StoreError(f"corrupt metadata for '{self.print_store_path(path)}': {e}", path=path)

    def _register_valid_path(self, info: PathInfo) -> None:
        atomic_write_text(self._info_file(info.path), yaml.safe_dump(info.model_dump(mode="json")))

    def _write_object(self, path: StorePath, contents: bytes) -> None:
        target = Path(self.print_store_path(path))
        tmp = target.with_name(f".{target.name}.{short_uuid()}.tmp")
        tmp.write_bytes(contents)
        os.replace(tmp, target)
