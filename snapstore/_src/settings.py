from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from snapstore._src.constants import DEFAULT_PROFILE_NAME, DEFAULT_ROOT, DEFAULT_STORE_URI


class Settings(BaseSettings):
    """Configuration for snapstore.

    Every field can be set from the environment with the `SNAPSTORE_`
    prefix, e.g. `SNAPSTORE_STORE=dummy://`. Command line options take
    precedence over the environment.

    Attributes:
        store: URI of the store to open
        root: state directory holding the local store and profiles
        profiles_dir: directory for profiles, defaults to `<root>/profiles`
        default_profile: name of the profile used when none is given
        catalog: optional YAML package catalog used to resolve names
        log_level: logging level name
        lock_profiles: hold an advisory lock while publishing a generation
    """

    model_config = SettingsConfigDict(
        env_prefix="SNAPSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    store: str = DEFAULT_STORE_URI
    root: str = DEFAULT_ROOT
    profiles_dir: Optional[str] = None
    default_profile: str = DEFAULT_PROFILE_NAME
    catalog: Optional[str] = None
    log_level: str = "warning"
    lock_profiles: bool = True

    @field_validator("root", "profiles_dir", "catalog")
    @classmethod
    def expand_and_resolve_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ and resolve to an absolute path."""
        if v is None:
            return v
        return str(Path(v).expanduser().resolve())

    def get_profiles_dir(self) -> Path:
        if self.profiles_dir is not None:
            return Path(self.profiles_dir)
        return Path(self.root) / "profiles"

    def get_default_profile(self) -> Path:
        return self.get_profiles_dir() / self.default_profile
