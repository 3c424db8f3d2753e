"""Profiles and their generations.

A profile named `<dir>/<name>` is a symlink to one of its generation
links `<dir>/<name>-<N>-link`, each of which points at a store path:

    default -> default-2-link -> /.../store/<hash>-env
    default-1-link -> /.../store/<hash>-old-env

Generation numbers only grow. The profile link is replaced with a
single rename, so readers always see a complete old or new profile.
Concurrent writers are not coordinated unless they use `profile_lock`:
otherwise both may claim the same number and the last rename wins.
"""

import contextlib
import datetime
import fcntl
import logging
import os
import re
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from pydantic import ValidationError

from snapstore._src.constants import GENERATION_LINK_TEMPLATE
from snapstore._src.exceptions import (
    AmbiguousResultError,
    EmptyResultError,
    StoreCapabilityError,
    StoreError,
    UsageError,
)
from snapstore._src.models.buildable import Buildable
from snapstore._src.models.generation import Generation
from snapstore._src.models.store_path import StorePath
from snapstore._src.store.base import LocalFSStore, Store
from snapstore._src.utils import ensure_dir, replace_symlink


logger = logging.getLogger(__name__)


def require_local_store(store: Store) -> LocalFSStore:
    if not isinstance(store, LocalFSStore):
        raise StoreCapabilityError(store.uri, "'--profile'")
    return store


def _absolute(profile: str | Path) -> Path:
    return Path(os.path.abspath(profile))


def _generation_link(profile: Path, number: int) -> Path:
    return profile.parent / GENERATION_LINK_TEMPLATE.format(name=profile.name, number=number)


def _generation_number(profile: Path, link_name: str) -> Optional[int]:
    match = re.fullmatch(rf"{re.escape(profile.name)}-(\d+)-link", link_name)
    if match is None:
        return None
    return int(match.group(1))


def _read_link(link: Path) -> str:
    try:
        return os.readlink(link)
    except OSError as e:
        raise StoreError(f"cannot read link '{link}': {e.strerror}")


def _read_generation(number: int, link: Path) -> Generation:
    target = _read_link(link)
    try:
        mtime = os.lstat(link).st_mtime
    except OSError as e:
        raise StoreError(f"cannot read link '{link}': {e.strerror}")
    created = datetime.datetime.fromtimestamp(mtime, datetime.UTC)
    try:
        target_path = StorePath(os.path.basename(os.path.normpath(target)))
    except ValidationError:
        raise StoreError(f"generation link '{link}' points outside the store: {target}")
    return Generation(
        number=number,
        target=target_path,
        link=link,
        created=str(created),
    )


def list_generations(profile: str | Path) -> List[Generation]:
    """All generations of `profile`, oldest first"""
    profile = _absolute(profile)
    if not profile.parent.is_dir():
        return []

    generations = []
    for entry in profile.parent.iterdir():
        number = _generation_number(profile, entry.name)
        if number is None or not entry.is_symlink():
            continue
        generations.append(_read_generation(number, entry))
    generations.sort(key=lambda g: g.number)
    return generations


def current_generation(profile: str | Path) -> Optional[Generation]:
    """The generation `profile` resolves through, None for a new profile"""
    profile = _absolute(profile)
    if not profile.is_symlink():
        return None

    link_name = os.path.basename(_read_link(profile))
    number = _generation_number(profile, link_name)
    if number is None:
        raise StoreError(f"profile '{profile}' does not point to one of its generations")
    return _read_generation(number, profile.parent / link_name)


def resolve_profile(profile: str | Path) -> StorePath:
    generation = current_generation(profile)
    if generation is None:
        raise StoreError(f"profile '{_absolute(profile)}' has no generations")
    return generation.target


def create_generation(store: Store, profile: str | Path, target: StorePath) -> Generation:
    """Add a generation pointing at `target`, without making it current.

    The number is one more than the highest existing generation, so
    numbers are not reused when older generations are deleted.
    """
    store = require_local_store(store)
    profile = _absolute(profile)
    if not store.is_valid_path(target):
        raise StoreError(
            f"cannot add '{store.print_store_path(target)}' to profile '{profile}': path is not valid",
            path=target,
        )

    ensure_dir(profile.parent)
    generations = list_generations(profile)
    number = generations[-1].number + 1 if generations else 1
    link = _generation_link(profile, number)
    replace_symlink(store.print_store_path(target), link)
    logger.info("created generation %d of '%s'", number, profile)
    return _read_generation(number, link)


def switch_profile(profile: str | Path, generation: Generation) -> None:
    """Atomically make `generation` the current generation of `profile`"""
    profile = _absolute(profile)
    if (
        generation.link.parent != profile.parent
        or _generation_number(profile, generation.link.name) != generation.number
    ):
        raise StoreError(f"generation {generation.number} does not belong to profile '{profile}'")
    if not generation.link.is_symlink():
        raise StoreError(f"generation {generation.number} of '{profile}' does not exist")

    # relative, so the profile directory can be moved as a whole
    replace_symlink(generation.link.name, profile)
    logger.info("switched '%s' to generation %d", profile, generation.number)


def rollback(profile: str | Path, to: Optional[int] = None) -> Generation:
    """Switch to generation `to`, or to the newest one older than the current"""
    profile = _absolute(profile)
    generations = list_generations(profile)

    if to is not None:
        candidates = [g for g in generations if g.number == to]
        if not candidates:
            raise UsageError(f"generation {to} of profile '{profile}' does not exist")
    else:
        current = current_generation(profile)
        if current is None:
            raise UsageError(f"profile '{profile}' has no current generation")
        candidates = [g for g in generations if g.number < current.number]
        if not candidates:
            raise UsageError(f"no generation of profile '{profile}' is older than {current.number}")

    target = candidates[-1]
    switch_profile(profile, target)
    return target


@contextlib.contextmanager
def profile_lock(profile: str | Path) -> Iterator[None]:
    """Hold an exclusive advisory lock on `<profile>.lock`.

    Only writers that take this lock are serialised against each other.
    """
    profile = _absolute(profile)
    ensure_dir(profile.parent)
    lock_file = profile.with_name(profile.name + ".lock")
    with open(lock_file, "w", encoding="utf-8") as f:
        logger.debug("waiting for lock on '%s'", lock_file)
        fcntl.flock(f, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)


def single_store_path(profile: str | Path, buildables: Sequence[Buildable]) -> StorePath:
    """The one distinct output path across all buildables"""
    paths = {}
    for buildable in buildables:
        for path in buildable.output_paths():
            paths[path] = None

    if not paths:
        raise EmptyResultError(profile)
    if len(paths) > 1:
        raise AmbiguousResultError(profile, [str(p) for p in paths])
    return next(iter(paths))


def update_profile(
    store: Store,
    profile: str | Path,
    result: StorePath | Sequence[Buildable],
    lock: bool = False,
) -> Generation:
    """Publish `result` as a new current generation of `profile`.

    `result` is either a store path or resolved buildables that must
    produce exactly one distinct path. With `lock`, creating and switching
    to the generation happen under `profile_lock`.
    """
    store = require_local_store(store)
    profile = _absolute(profile)
    if isinstance(result, StorePath):
        path = result
    else:
        path = single_store_path(profile, result)

    lock_context = profile_lock(profile) if lock else contextlib.nullcontext()
    with lock_context:
        generation = create_generation(store, profile, path)
        switch_profile(profile, generation)
    return generation
