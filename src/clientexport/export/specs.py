from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from clientexport.domain.models import Attribute, TypeRef

GENERATED_SUFFIX = ".py"


class GeneratedParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef
    attributes: tuple[Attribute, ...] = ()
    keyword_only: bool = False


class GeneratedMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    parameters: tuple[GeneratedParameter, ...] = ()
    return_type: Optional[TypeRef] = None
    attributes: tuple[Attribute, ...] = ()
    is_async: bool = False


class InterfaceRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    package: str
    name: str

    @property
    def module(self) -> str:
        # one interface per module, named after the interface
        return f"{self.package}.{self.name}"


class GeneratedInterfaceSpec(BaseModel):
    """
    Structured description of one generated client interface.

    This is the whole contract with the code printer: base interfaces carry
    the translated methods, leaf interfaces carry the remote-target head
    attribute and extend the base.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    package: str
    methods: tuple[GeneratedMethod, ...] = ()
    head: Optional[Attribute] = None
    supertypes: tuple[InterfaceRef, ...] = ()
    origin: str = ""
    regenerated: bool = True

    @property
    def ref(self) -> InterfaceRef:
        return InterfaceRef(package=self.package, name=self.name)

    def relative_path(self) -> Path:
        return interface_path(self.package, self.name)


def interface_path(package: str, name: str) -> Path:
    """shop.clients.base + OrderClientBase -> shop/clients/base/OrderClientBase.py"""
    return Path(*package.split(".")) / f"{name}{GENERATED_SUFFIX}"
