from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from snapstore._src.models.store_path import StorePath


class Buildable(BaseModel):
    """The resolved form of an installable"""
    drv_path: Optional[StorePath] = None
    outputs: Dict[str, StorePath] = Field(default={})

    def output_paths(self) -> List[StorePath]:
        return list(self.outputs.values())
