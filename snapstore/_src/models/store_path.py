import datetime
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from snapstore._src.constants import DERIVATION_EXTENSION, HASH_PART_LENGTH


_BASE_NAME_RE = re.compile(rf"^[0-9a-z]{{{HASH_PART_LENGTH}}}-[A-Za-z0-9+\-._?=]+$")


class StorePath(RootModel[str]):
    """An object in the store, identified by its base name `<hash>-<name>`.

    The store directory is not part of the identity, use
    `Store.print_store_path` to get a filesystem path.
    """
    model_config = ConfigDict(frozen=True)

    @field_validator("root")
    @classmethod
    def check_base_name(cls, v: str) -> str:
        if not _BASE_NAME_RE.match(v):
            raise ValueError(f"'{v}' is not a valid store path base name")
        return v

    @property
    def base_name(self) -> str:
        return self.root

    @property
    def hash_part(self) -> str:
        return self.root[:HASH_PART_LENGTH]

    @property
    def name(self) -> str:
        return self.root[HASH_PART_LENGTH + 1:]

    def is_derivation(self) -> bool:
        return self.root.endswith(DERIVATION_EXTENSION)

    def __str__(self):
        return self.root

    def __hash__(self):
        return hash(self.root)

    def __lt__(self, other):
        if isinstance(other, StorePath):
            return self.root < other.root
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, StorePath):
            return self.root <= other.root
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, StorePath):
            return self.root > other.root
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, StorePath):
            return self.root >= other.root
        return NotImplemented


class PathInfo(BaseModel):
    """Metadata the store keeps for each valid path"""
    path: StorePath
    references: List[StorePath] = Field(default=[])
    deriver: Optional[StorePath] = None
    # only set for derivations: output name -> output path
    outputs: Dict[str, StorePath] = Field(default={})
    registration_time: str = Field(
        default_factory=lambda: str(datetime.datetime.now(datetime.UTC))
    )
