from enum import Enum


DEFAULT_STORE_URI = "local"

DEFAULT_ROOT = "~/.local/share/snapstore"

DEFAULT_PROFILE_NAME = "default"

# length of the hash part of a store path base name
HASH_PART_LENGTH = 32

DERIVATION_EXTENSION = ".drv"

GENERATION_LINK_TEMPLATE = "{name}-{number}-link"


class Realise(str, Enum):
    NOTHING = "nothing"
    DRY_RUN = "dry-run"
    FULL = "full"


class OperateOn(str, Enum):
    OUTPUT = "output"
    DERIVATION = "derivation"
