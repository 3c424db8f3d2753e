import hashlib
import os
import uuid
from pathlib import Path


def hash_string(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def ensure_dir(s: str | Path) -> None:
    """Recursively create a directory if it does not exist"""
    path = Path(s)
    path.mkdir(parents=True, exist_ok=True)


def short_uuid() -> str:
    return uuid.uuid4().hex[:8]


def atomic_write_text(path: Path, text: str) -> None:
    """Write `text` to `path` so readers see either the old or the new file."""
    ensure_dir(path.parent)
    tmp = path.with_name(f".{path.name}.{short_uuid()}.tmp")
    with tmp.open("w", encoding="utf-8", newline="\n") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


def replace_symlink(target: str, link: Path) -> None:
    """Point `link` at `target` with a single rename.

    The new link is created under a temporary name in the same directory
    and renamed over `link`, so a concurrent reader resolves either the old
    target or the new one, never a missing link.
    """
    ensure_dir(link.parent)
    tmp = link.with_name(f".{link.name}.{short_uuid()}.tmp")
    os.symlink(target, tmp)
    try:
        os.replace(tmp, link)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
