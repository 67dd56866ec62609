from __future__ import annotations

import ast
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator, Literal, Optional

MARKERS_MODULE = "clientexport.markers"

# Type-level markers
CLIENT_EXPORT = "client_export"
EXPORT = "export"
REST_CONTROLLER = "rest_controller"
CONTROLLER = "controller"
RESPONSE_BODY = "response_body"
REMOTE_CLIENT = "remote_client"

# Route decorators
GET_MAPPING = "get_mapping"
POST_MAPPING = "post_mapping"
PUT_MAPPING = "put_mapping"
DELETE_MAPPING = "delete_mapping"
PATCH_MAPPING = "patch_mapping"
REQUEST_MAPPING = "request_mapping"

ROUTE_KINDS = frozenset(
    {GET_MAPPING, POST_MAPPING, PUT_MAPPING, DELETE_MAPPING, PATCH_MAPPING, REQUEST_MAPPING}
)

# Parameter binding markers
REQUEST_HEADER = "RequestHeader"
REQUEST_PARAM = "RequestParam"
REQUEST_BODY = "RequestBody"
PATH_VARIABLE = "PathVariable"
MODEL_ATTRIBUTE = "ModelAttribute"

BINDING_KINDS = frozenset(
    {REQUEST_HEADER, REQUEST_PARAM, REQUEST_BODY, PATH_VARIABLE, MODEL_ATTRIBUTE}
)

# Bindings a client proxy cannot build a request for without an explicit name
NAME_REQUIRED_BINDING_KINDS = frozenset({REQUEST_PARAM, PATH_VARIABLE})

# Member names that positional marker arguments map to (default: "value")
POSITIONAL_MEMBERS: dict[str, tuple[str, ...]] = {
    CLIENT_EXPORT: ("export_package", "extract_name"),
    REMOTE_CLIENT: ("name", "path"),
}

TypeKind = Literal["class", "interface", "root", "unresolved"]


def positional_members(kind: str) -> tuple[str, ...]:
    return POSITIONAL_MEMBERS.get(kind, ("value",))


@dataclass(frozen=True)
class ImportRef:
    """An import statement that binds one local name."""

    module: str
    name: Optional[str] = None  # None -> "import module"
    alias: Optional[str] = None

    def render(self) -> str:
        if self.name is None:
            stmt = f"import {self.module}"
        else:
            stmt = f"from {self.module} import {self.name}"
        if self.alias and self.alias != (self.name or self.module):
            stmt += f" as {self.alias}"
        return stmt


@dataclass(frozen=True)
class Attribute:
    """
    One marker attached to a type, method or parameter.

    Members keep their declaration order and hold Python source expressions,
    so they can be copied into generated code verbatim. `imports` binds the
    names those expressions use, resolved in the declaring module.
    """

    kind: str
    members: tuple[tuple[str, str], ...] = ()
    module: str = MARKERS_MODULE
    imports: tuple[ImportRef, ...] = ()

    def member(self, name: str) -> Optional[str]:
        for key, expr in self.members:
            if key == name:
                return expr
        return None

    def has_member(self, name: str) -> bool:
        return self.member(name) is not None

    def with_member(self, name: str, expr: str) -> Attribute:
        return replace(self, members=(*self.members, (name, expr)))

    def literal(self, name: str) -> Any:
        expr = self.member(name)
        if expr is None:
            return None
        try:
            return ast.literal_eval(expr)
        except (ValueError, SyntaxError):
            return None


@dataclass(frozen=True)
class AttributeSet:
    attributes: tuple[Attribute, ...] = ()

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def get(self, kind: str) -> Optional[Attribute]:
        for attr in self.attributes:
            if attr.kind == kind:
                return attr
        return None

    def has(self, kind: str) -> bool:
        return self.get(kind) is not None

    def has_any(self, kinds: Iterable[str]) -> bool:
        wanted = set(kinds)
        return any(attr.kind in wanted for attr in self.attributes)

    def of_kinds(self, kinds: Iterable[str]) -> list[Attribute]:
        wanted = set(kinds)
        return [attr for attr in self.attributes if attr.kind in wanted]


@dataclass(frozen=True)
class TypeRef:
    expr: str
    imports: tuple[ImportRef, ...] = ()


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    type: TypeRef
    attributes: AttributeSet = field(default_factory=AttributeSet)
    keyword_only: bool = False


SignatureIdentity = tuple[str, tuple[str, ...]]


@dataclass(frozen=True)
class MethodDescriptor:
    name: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    return_type: Optional[TypeRef] = None
    attributes: AttributeSet = field(default_factory=AttributeSet)
    is_async: bool = False
    owner: str = ""  # qualified name of the declaring type
    lineno: int = 0

    @property
    def exported(self) -> bool:
        return self.attributes.has(EXPORT)

    @property
    def signature(self) -> SignatureIdentity:
        return (self.name, tuple(p.type.expr for p in self.parameters))


@dataclass(frozen=True)
class CandidateType:
    """
    A reflected class and its declared members.

    Every ancestry chain ends in ROOT_TYPE. A base class the reflector could
    not find is kept as a node of kind "unresolved" so the collector can
    reject it when, and only when, it has to walk through it.
    """

    qualified_name: str
    name: str
    kind: TypeKind = "class"
    methods: tuple[MethodDescriptor, ...] = ()
    attributes: AttributeSet = field(default_factory=AttributeSet)
    supertype: Optional[CandidateType] = None
    module: str = ""
    path: str = ""

    @property
    def is_root(self) -> bool:
        return self.kind == "root"

    @property
    def export_all(self) -> bool:
        return self.attributes.has(EXPORT)

    @property
    def explicit_extract_name(self) -> Optional[str]:
        attr = self.attributes.get(CLIENT_EXPORT)
        value = attr.literal("extract_name") if attr else None
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @property
    def export_package(self) -> Optional[str]:
        attr = self.attributes.get(CLIENT_EXPORT)
        value = attr.literal("export_package") if attr else None
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @property
    def base_route(self) -> str:
        attr = self.attributes.get(REQUEST_MAPPING)
        if attr is None:
            return ""
        value = attr.literal("value")
        if value is None:
            value = attr.literal("path")
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        return value if isinstance(value, str) else ""


ROOT_TYPE = CandidateType(qualified_name="builtins.object", name="object", kind="root", module="builtins")
