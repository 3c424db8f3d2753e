from pathlib import Path

from pydantic import BaseModel, Field

from snapstore._src.models.store_path import StorePath


class Generation(BaseModel):
    """One numbered target of a profile

    `link` is the `<profile>-<number>-link` symlink that points at the target.
    """
    number: int = Field(ge=1)
    target: StorePath
    link: Path
    created: str
