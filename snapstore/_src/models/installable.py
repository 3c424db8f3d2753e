from typing import List, Literal, Union

from pydantic import BaseModel, Field
from typing_extensions import Annotated

from snapstore._src.models.store_path import StorePath


class InstallableStorePath(BaseModel):
    """A store path given directly, or through a symlink into the store"""
    kind: Literal["path"] = "path"
    path: StorePath

    def __str__(self):
        return str(self.path)


class InstallableAttrPath(BaseModel):
    """A symbolic package name, looked up in the package catalog"""
    kind: Literal["attr"] = "attr"
    attr_path: str

    def __str__(self):
        return self.attr_path


class InstallableDerivationOutput(BaseModel):
    """Named outputs of a derivation, `<drv>!out,dev` or `<drv>!*`

    An empty `outputs` list selects every output of the derivation.
    """
    kind: Literal["output"] = "output"
    drv_path: StorePath
    outputs: List[str] = Field(default=[])

    def __str__(self):
        return f"{self.drv_path}!{','.join(self.outputs) or '*'}"


Installable = Annotated[
    Union[InstallableStorePath, InstallableAttrPath, InstallableDerivationOutput],
    Field(discriminator="kind"),
]
