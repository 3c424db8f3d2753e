from urllib.parse import parse_qs, urlparse

from snapstore._src.exceptions import StoreError
from snapstore._src.settings import Settings
from snapstore._src.store.base import Store
from snapstore._src.store.local import LocalStore
from snapstore._src.store.memory import MemoryStore


def open_store(uri: str, settings: Settings) -> Store:
    """Open the store named by `uri`.

    Accepted forms are `local` (the store under the configured root),
    `local?root=<dir>`, an absolute directory, and `dummy://`.
    """
    if uri.startswith("/"):
        return LocalStore(uri)

    parsed = urlparse(uri)
    if parsed.scheme == "" and parsed.path == "local":
        params = parse_qs(parsed.query)
        root = params.get("root", [settings.root])[0]
        return LocalStore(root)

    if parsed.scheme == "dummy":
        return MemoryStore()

    raise StoreError(f"don't know how to open store '{uri}'")
