import logging
from pathlib import Path
from typing import Tuple

import yaml
from pydantic import ValidationError

from snapstore._src.exceptions import ResolutionError, UsageError
from snapstore._src.models.catalog import Catalog, CatalogEntry


logger = logging.getLogger(__name__)


def load_catalog(path: str | Path | None) -> Catalog:
    """Read a catalog.yaml file, an absent path gives an empty catalog"""
    if path is None:
        return Catalog()

    try:
        with open(path, 'r') as file:
            raw_catalog = yaml.safe_load(file)
        catalog = Catalog.model_validate(raw_catalog or {})
    except OSError as e:
        raise UsageError(f"cannot read catalog '{path}': {e.strerror}")
    except (yaml.YAMLError, ValidationError) as e:
        raise UsageError(f"invalid catalog '{path}': {e}")

    logger.debug("loaded %d package(s) from %s", len(catalog.packages), path)
    return catalog


def lookup(catalog: Catalog, name: str) -> Tuple[str, CatalogEntry]:
    """Find the entry for `name`.

    An exact attribute path wins. Otherwise every attribute whose last
    component is `name` matches, e.g. `hello` matches `tools.hello`.
    """
    if name in catalog.packages:
        return name, catalog.packages[name]

    matches = sorted(
        attr for attr in catalog.packages
        if attr.rsplit(".", 1)[-1] == name
    )
    if not matches:
        raise ResolutionError(name, "no package with this name in the catalog")
    if len(matches) > 1:
        raise ResolutionError(name, f"ambiguous, it matches {', '.join(matches)}")
    return matches[0], catalog.packages[matches[0]]
