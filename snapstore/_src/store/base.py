import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set

import yaml
from pydantic import ValidationError

from snapstore._src import closure
from snapstore._src.constants import DERIVATION_EXTENSION, HASH_PART_LENGTH
from snapstore._src.exceptions import StoreError
from snapstore._src.models.store_path import PathInfo, StorePath
from snapstore._src.utils import hash_string


logger = logging.getLogger(__name__)


class Store(ABC):
    """Read and register objects in a store.

    Subclasses provide the storage of path metadata and object contents,
    everything else (path syntax, closure computation, registration
    rules) is shared.
    """

    def __init__(self, uri: str, store_dir: str):
        self.uri = uri
        self.store_dir = os.path.normpath(store_dir)

    def __repr__(self):
        return f"{type(self).__name__}({self.uri!r})"

    @abstractmethod
    def query_all_valid_paths(self) -> Set[StorePath]:
        ...

    @abstractmethod
    def _query_path_info(self, path: StorePath) -> Optional[PathInfo]:
        ...

    @abstractmethod
    def _register_valid_path(self, info: PathInfo) -> None:
        ...

    @abstractmethod
    def _write_object(self, path: StorePath, contents: bytes) -> None:
        ...

    def print_store_path(self, path: StorePath) -> str:
        return f"{self.store_dir}/{path.base_name}"

    def is_in_store(self, s: str) -> bool:
        return os.path.normpath(s).startswith(self.store_dir + "/")

    def parse_store_path(self, s: str) -> StorePath:
        """Parse an absolute path naming a store object (not a file inside one)."""
        normalized = os.path.normpath(s)
        if os.path.dirname(normalized) != self.store_dir:
            raise StoreError(f"path '{s}' is not in the store '{self.store_dir}'", path=s)
        try:
            return StorePath(os.path.basename(normalized))
        except ValidationError:
            raise StoreError(f"path '{s}' is not a valid store path", path=s)

    def to_store_path(self, s: str) -> StorePath:
        """Return the store object containing `s`, which may be a file inside it."""
        if not self.is_in_store(s):
            raise StoreError(f"path '{s}' is not in the store '{self.store_dir}'", path=s)
        relative = os.path.normpath(s)[len(self.store_dir) + 1:]
        return self.parse_store_path(f"{self.store_dir}/{relative.split('/')[0]}")

    def make_store_path(self, name: str, fingerprint: str) -> StorePath:
        digest = hash_string(f"{fingerprint}:{self.store_dir}:{name}")
        try:
            return StorePath(f"{digest[:HASH_PART_LENGTH]}-{name}")
        except ValidationError:
            raise StoreError(f"invalid store path name '{name}'")

    def is_valid_path(self, path: StorePath) -> bool:
        return self._query_path_info(path) is not None

    def query_path_info(self, path: StorePath) -> PathInfo:
        info = self._query_path_info(path)
        if info is None:
            raise StoreError(f"path '{self.print_store_path(path)}' is not valid", path=path)
        return info

    def query_references(self, paths: Iterable[StorePath]) -> Dict[StorePath, List[StorePath]]:
        return {path: self.query_path_info(path).references for path in paths}

    def query_referrers(self, paths: Iterable[StorePath]) -> Dict[StorePath, List[StorePath]]:
        wanted = {path: [] for path in paths}
        for candidate in sorted(self.query_all_valid_paths()):
            for ref in self.query_path_info(candidate).references:
                if ref in wanted:
                    wanted[ref].append(candidate)
        return wanted

    def compute_closure(self, roots: Iterable[StorePath], flip_direction: bool = False) -> Set[StorePath]:
        """Closure of `roots` over references, or over referrers if `flip_direction`."""
        query = self.query_referrers if flip_direction else self.query_references
        return closure.compute_closure(roots, query)

    def query_derivation_outputs(self, drv_path: StorePath) -> Dict[str, StorePath]:
        info = self.query_path_info(drv_path)
        if not drv_path.is_derivation() or not info.outputs:
            raise StoreError(f"path '{self.print_store_path(drv_path)}' is not a derivation", path=drv_path)
        return dict(info.outputs)

    def ensure_path(self, path: StorePath) -> None:
        """Make sure `path` is valid.

        Substituting or building missing paths is not supported, so this
        only fails when the path is absent.
        """
        if not self.is_valid_path(path):
            raise StoreError(
                f"path '{self.print_store_path(path)}' is not valid and cannot be realised by this store",
                path=path,
            )

    def check_path_contents(self, path: StorePath) -> bool:
        return self.is_valid_path(path)

    def add_to_store(
        self, name: str, contents: bytes | str, references: Iterable[StorePath] = ()
    ) -> StorePath:
        """Add an object with the given contents and references, returning its path"""
        return self._add_object(name, contents, references, {})

    def _add_object(self, name, contents, references, outputs) -> StorePath:
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        references = sorted(set(references))
        for ref in references:
            if not self.is_valid_path(ref):
                raise StoreError(
                    f"cannot add '{name}': reference '{self.print_store_path(ref)}' is not valid",
                    path=ref,
                )
        fingerprint = hash_string(contents.hex() + ":" + ":".join(str(r) for r in references))
        path = self.make_store_path(name, fingerprint)
        if self.is_valid_path(path):
            return path

        self._write_object(path, contents)
        self._register_valid_path(PathInfo(path=path, references=references, outputs=outputs))
        logger.info("added %s", self.print_store_path(path))
        return path

    def add_derivation(
        self, name: str, outputs: Dict[str, StorePath], references: Iterable[StorePath] = ()
    ) -> StorePath:
        """Register a derivation producing `outputs`.

        The outputs do not have to be valid, a derivation whose outputs
        are missing is simply not realised.
        """
        if not outputs:
            raise StoreError(f"derivation '{name}' must have at least one output")
        if not name.endswith(DERIVATION_EXTENSION):
            name = name + DERIVATION_EXTENSION
        contents = yaml.safe_dump(
            {"outputs": {out: str(path) for out, path in sorted(outputs.items())}}
        )
        return self._add_object(name, contents, references, dict(outputs))


class LocalFSStore(Store):
    """A store whose objects live in a local directory.

    Profiles can only be created against these stores.
    """

    def check_path_contents(self, path: StorePath) -> bool:
        return self.is_valid_path(path) and os.path.lexists(self.print_store_path(path))
