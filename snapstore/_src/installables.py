import logging
import os
from typing import Iterable, List, Optional, Sequence, Set

from snapstore._src import catalog as catalog_lookup
from snapstore._src.constants import OperateOn, Realise
from snapstore._src.exceptions import ResolutionError, StoreError, UsageError
from snapstore._src.models.buildable import Buildable
from snapstore._src.models.catalog import Catalog
from snapstore._src.models.installable import (
    Installable,
    InstallableAttrPath,
    InstallableDerivationOutput,
    InstallableStorePath,
)
from snapstore._src.models.store_path import StorePath
from snapstore._src.store.base import Store


logger = logging.getLogger(__name__)


def parse_installable(store: Store, text: str) -> Installable:
    """Turn a command line argument into an installable.

    - `<drv>!out,dev` or `<drv>!*` selects outputs of a derivation
    - anything that looks like a filesystem path is followed through
      symlinks (e.g. `./result`) until it lands in the store
    - everything else is a package name
    """
    if "!" in text:
        drv, _, outputs = text.partition("!")
        drv_path = _path_to_store_path(store, drv, text)
        if not drv_path.is_derivation():
            raise ResolutionError(text, "only derivations have named outputs")
        selected = [] if outputs == "*" else [out for out in outputs.split(",") if out]
        if not selected and outputs != "*":
            raise ResolutionError(text, "no output name given")
        return InstallableDerivationOutput(drv_path=drv_path, outputs=selected)

    if "/" in text or text.startswith("."):
        return InstallableStorePath(path=_path_to_store_path(store, text, text))

    return InstallableAttrPath(attr_path=text)


def parse_installables(store: Store, texts: Iterable[str]) -> List[Installable]:
    return [parse_installable(store, text) for text in texts]


def _path_to_store_path(store: Store, path: str, reference: str) -> StorePath:
    # follow links such as ./result until we end up inside the store
    resolved = os.path.abspath(path)
    seen = set()
    while not store.is_in_store(resolved) and os.path.islink(resolved):
        if resolved in seen:
            raise ResolutionError(reference, "symlink loop")
        seen.add(resolved)
        target = os.readlink(resolved)
        resolved = os.path.normpath(os.path.join(os.path.dirname(resolved), target))
    try:
        return store.to_store_path(resolved)
    except StoreError as e:
        raise ResolutionError(reference, e.msg)


class InstallableResolver:
    """Resolve installables to store paths.

    Parameters
    ----------
    store: Store
        The store paths are resolved against
    catalog: Catalog
        Packages that can be referred to by name
    """

    def __init__(self, store: Store, catalog: Optional[Catalog] = None):
        self.store = store
        self.catalog = catalog if catalog is not None else Catalog()

    def resolve_to_buildables(
        self, installables: Sequence[Installable], mode: Realise = Realise.NOTHING
    ) -> List[Buildable]:
        buildables = []
        for installable in installables:
            buildable = self._resolve(installable)
            self._realise(installable, buildable, mode)
            buildables.append(buildable)
        return buildables

    def _resolve(self, installable: Installable) -> Buildable:
        if isinstance(installable, InstallableStorePath):
            return self._resolve_store_path(installable)
        if isinstance(installable, InstallableAttrPath):
            return self._resolve_attr_path(installable)
        if isinstance(installable, InstallableDerivationOutput):
            return self._resolve_derivation_output(installable)
        raise TypeError(f"unknown installable {installable!r}")

    def _resolve_store_path(self, installable: InstallableStorePath) -> Buildable:
        path = installable.path
        if not self.store.is_valid_path(path):
            raise ResolutionError(self.store.print_store_path(path), "path does not exist in the store")
        if path.is_derivation():
            return Buildable(drv_path=path, outputs=self.store.query_derivation_outputs(path))
        return Buildable(outputs={"out": path})

    def _resolve_attr_path(self, installable: InstallableAttrPath) -> Buildable:
        attr, entry = catalog_lookup.lookup(self.catalog, installable.attr_path)
        try:
            drv_path = self.store.parse_store_path(entry.drv) if entry.drv else None
            outputs = {
                out: self.store.parse_store_path(path)
                for out, path in entry.outputs.items()
            }
        except StoreError as e:
            raise ResolutionError(installable.attr_path, f"catalog entry '{attr}' is invalid: {e.msg}")
        if not outputs:
            raise ResolutionError(installable.attr_path, f"catalog entry '{attr}' has no outputs")
        return Buildable(drv_path=drv_path, outputs=outputs)

    def _resolve_derivation_output(self, installable: InstallableDerivationOutput) -> Buildable:
        drv_path = installable.drv_path
        if not self.store.is_valid_path(drv_path):
            raise ResolutionError(str(installable), "derivation does not exist in the store")
        all_outputs = self.store.query_derivation_outputs(drv_path)
        if not installable.outputs:
            return Buildable(drv_path=drv_path, outputs=all_outputs)

        outputs = {}
        for out in installable.outputs:
            if out not in all_outputs:
                raise ResolutionError(str(installable), f"derivation has no output '{out}'")
            outputs[out] = all_outputs[out]
        return Buildable(drv_path=drv_path, outputs=outputs)

    def _realise(self, installable: Installable, buildable: Buildable, mode: Realise) -> None:
        if mode == Realise.NOTHING:
            return

        missing = [p for p in buildable.output_paths() if not self.store.is_valid_path(p)]
        if mode == Realise.DRY_RUN:
            for path in missing:
                logger.info("would realise %s", self.store.print_store_path(path))
            return

        for path in buildable.output_paths():
            self.store.ensure_path(path)
        logger.debug("%s is realised", installable)

    def resolve_to_paths(
        self,
        installables: Sequence[Installable],
        mode: Realise = Realise.NOTHING,
        operate_on: OperateOn = OperateOn.OUTPUT,
        exactly_one: bool = False,
    ) -> List[StorePath]:
        """Resolve installables to distinct paths in first-seen order.

        With `exactly_one`, anything other than a single resulting path
        is a UsageError.
        """
        paths = {}
        for buildable in self.resolve_to_buildables(installables, mode):
            if operate_on == OperateOn.DERIVATION and buildable.drv_path is not None:
                paths[buildable.drv_path] = None
            else:
                for path in buildable.output_paths():
                    paths[path] = None

        if exactly_one and len(paths) != 1:
            raise UsageError(
                f"this command requires exactly one store path, but {len(paths)} were given"
            )
        return list(paths)

    def resolve_to_path(
        self,
        installable: Installable,
        mode: Realise = Realise.NOTHING,
        operate_on: OperateOn = OperateOn.OUTPUT,
    ) -> StorePath:
        return self.resolve_to_paths([installable], mode, operate_on, exactly_one=True)[0]

    def resolve_all(self, installables: Sequence[Installable] = ()) -> List[StorePath]:
        """Every valid path in the store, sorted.

        This replaces installables entirely, so giving any is an error.
        """
        if installables:
            raise UsageError("'--all' does not expect arguments")
        return sorted(self.store.query_all_valid_paths())

    def expand_closure(self, paths: Iterable[StorePath], recursive: bool = True) -> Set[StorePath]:
        if not recursive:
            return set(paths)
        return self.store.compute_closure(paths)

    def select_store_paths(
        self,
        installables: Sequence[Installable],
        all_paths: bool = False,
        recursive: bool = False,
        mode: Realise = Realise.NOTHING,
        operate_on: OperateOn = OperateOn.OUTPUT,
    ) -> List[StorePath]:
        """Paths a store-paths command should operate on.

        `all_paths` selects the whole store. Otherwise the installables are
        resolved and, if `recursive`, replaced by their closure.
        """
        if all_paths:
            return self.resolve_all(installables)

        paths = self.resolve_to_paths(installables, mode, operate_on)
        if recursive:
            return sorted(self.expand_closure(paths))
        return paths
