from pathlib import Path

import pytest
import yaml

from snapstore._src.store.local import LocalStore
from snapstore._src.store.memory import MemoryStore


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    """A local store rooted in a temporary directory."""
    return LocalStore(tmp_path / "root")


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def chain(local_store: LocalStore) -> dict:
    """Three paths where a references b and b references c."""
    c = local_store.add_to_store("c", "leaf")
    b = local_store.add_to_store("b", "middle", references=[c])
    a = local_store.add_to_store("a", "top", references=[b])
    return {"a": a, "b": b, "c": c}


@pytest.fixture
def hello_drv(local_store: LocalStore) -> dict:
    """A derivation with a realised `out` and an unrealised `doc` output."""
    out = local_store.add_to_store("hello-1.0", "#!/bin/sh\necho hello\n")
    doc = local_store.make_store_path("hello-1.0-doc", "not built")
    drv = local_store.add_derivation("hello-1.0", {"out": out, "doc": doc})
    return {"drv": drv, "out": out, "doc": doc}


@pytest.fixture
def profile(tmp_path: Path) -> Path:
    return tmp_path / "profiles" / "default"


@pytest.fixture
def catalog_file(tmp_path: Path, local_store: LocalStore, hello_drv: dict) -> Path:
    """A catalog with `hello` and two packages both called `tool`."""
    tool_a = local_store.add_to_store("tool-a", "a")
    tool_b = local_store.add_to_store("tool-b", "b")
    content = {
        "packages": {
            "hello": {
                "drv": local_store.print_store_path(hello_drv["drv"]),
                "outputs": {"out": local_store.print_store_path(hello_drv["out"])},
            },
            "devel.tool": {"outputs": {"out": local_store.print_store_path(tool_a)}},
            "legacy.tool": {"outputs": {"out": local_store.print_store_path(tool_b)}},
        }
    }
    path = tmp_path / "catalog.yaml"
    path.write_text(yaml.safe_dump(content))
    return path
