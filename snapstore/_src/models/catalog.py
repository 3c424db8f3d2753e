from typing import Dict, Optional

from pydantic import BaseModel, Field


class CatalogEntry(BaseModel):
    """A package known by name: its derivation and output paths"""
    drv: Optional[str] = None
    outputs: Dict[str, str]


class Catalog(BaseModel):
    """Input package catalog (catalog.yaml)"""
    packages: Dict[str, CatalogEntry] = Field(default={})
