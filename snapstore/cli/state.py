import os
from pathlib import Path
from typing import Optional

import typer

from snapstore._src.catalog import load_catalog
from snapstore._src.installables import InstallableResolver
from snapstore._src.profiles import require_local_store
from snapstore._src.settings import Settings
from snapstore._src.store.base import LocalFSStore, Store
from snapstore._src.store.factory import open_store


class CliState():
    """Settings plus the store and resolver, opened on first use"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._store = None
        self._resolver = None

    def get_store(self) -> Store:
        if self._store is None:
            self._store = open_store(self.settings.store, self.settings)
        return self._store

    def get_local_store(self) -> LocalFSStore:
        """The store, which must be able to host profiles"""
        return require_local_store(self.get_store())

    def get_resolver(self) -> InstallableResolver:
        if self._resolver is None:
            catalog = load_catalog(self.settings.catalog)
            self._resolver = InstallableResolver(self.get_store(), catalog)
        return self._resolver

    def profile_path(self, profile: Optional[str]) -> Path:
        if profile is None:
            return self.settings.get_default_profile()
        return Path(os.path.abspath(profile))


def get_state(ctx: typer.Context) -> CliState:
    return ctx.find_root().obj


def recursive_option(default: bool):
    """`--recursive/--no-recursive` with a per-command default"""
    if default:
        help = "apply operation to the closure of the specified paths (default); --no-recursive: specified paths only"
    else:
        help = "apply operation to the closure of the specified paths; default: specified paths only"
    return typer.Option(default, "--recursive/--no-recursive", "-r", help=help)
