from __future__ import annotations

import ast
import builtins
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from clientexport.domain.errors import MetadataInconsistency
from clientexport.domain.models import (
    BINDING_KINDS,
    MARKERS_MODULE,
    ROOT_TYPE,
    Attribute,
    AttributeSet,
    CandidateType,
    ImportRef,
    MethodDescriptor,
    ParameterDescriptor,
    TypeKind,
    TypeRef,
    positional_members,
)

logger = logging.getLogger(__name__)

# Bases that never form part of the ancestry chain
_MIXIN_BASES = {"object", "ABC", "Generic"}
_PROTOCOL_BASE = "Protocol"
_BUILTIN_NAMES = frozenset(dir(builtins))


def _dotted_name(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        head = _dotted_name(node.value)
        return f"{head}.{node.attr}" if head else None
    return None


def _resolve_relative(module: Optional[str], level: int, current: str, is_package: bool) -> str:
    if level == 0:
        return module or ""
    parts = current.split(".") if current else []
    if not is_package:
        parts = parts[:-1]
    drop = level - 1
    if drop:
        parts = parts[:-drop] if drop <= len(parts) else []
    base = ".".join(parts)
    if module:
        return f"{base}.{module}" if base else module
    return base


def _iter_module_statements(body: Iterable[ast.stmt]) -> Iterator[ast.stmt]:
    # top-level statements, including those guarded by if/try (e.g. TYPE_CHECKING imports)
    for stmt in body:
        yield stmt
        if isinstance(stmt, ast.If):
            yield from _iter_module_statements(stmt.body)
            yield from _iter_module_statements(stmt.orelse)
        elif isinstance(stmt, ast.Try):
            yield from _iter_module_statements(stmt.body)
            for handler in stmt.handlers:
                yield from _iter_module_statements(handler.body)
            yield from _iter_module_statements(stmt.orelse)


@dataclass
class ModuleContext:
    """Name bindings of one source module, used to qualify names and carry imports."""

    module: str
    is_package: bool
    path: str
    imports: dict[str, ImportRef]
    top_level: set[str]

    @classmethod
    def from_tree(cls, tree: ast.Module, module: str, is_package: bool = False, path: str = "") -> ModuleContext:
        imports: dict[str, ImportRef] = {}
        top_level: set[str] = set()

        for stmt in _iter_module_statements(tree.body):
            if isinstance(stmt, ast.Import):
                for alias in stmt.names:
                    if alias.asname:
                        imports[alias.asname] = ImportRef(alias.name, None, alias.asname)
                    else:
                        imports[alias.name.split(".")[0]] = ImportRef(alias.name)
            elif isinstance(stmt, ast.ImportFrom):
                base = _resolve_relative(stmt.module, stmt.level, module, is_package)
                for alias in stmt.names:
                    if alias.name == "*":
                        continue
                    imports[alias.asname or alias.name] = ImportRef(base, alias.name, alias.asname)
            elif isinstance(stmt, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
                top_level.add(stmt.name)
            elif isinstance(stmt, ast.Assign):
                for target in stmt.targets:
                    if isinstance(target, ast.Name):
                        top_level.add(target.id)
            elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                top_level.add(stmt.target.id)

        return cls(module=module, is_package=is_package, path=path, imports=imports, top_level=top_level)

    def qualify(self, dotted: str) -> str:
        """
        Turn a name as spelled in this module into its fully-qualified form.
        Unknown names come back unchanged.
        """
        head, _, rest = dotted.partition(".")
        ref = self.imports.get(head)
        if ref is not None:
            if ref.name is not None:
                base = f"{ref.module}.{ref.name}" if ref.module else ref.name
            elif ref.alias:
                base = ref.module
            else:
                # "import a.b" binds "a"; the spelling is already qualified
                return dotted
            return f"{base}.{rest}" if rest else base
        if head in self.top_level and self.module:
            return f"{self.module}.{dotted}"
        return dotted

    def imports_for(self, node: ast.AST) -> tuple[ImportRef, ...]:
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            # string (forward reference) annotation
            try:
                node = ast.parse(node.value, mode="eval")
            except SyntaxError:
                return ()
        return self.expr_imports(node)

    def expr_imports(self, node: ast.AST) -> tuple[ImportRef, ...]:
        """Imports binding every free name of a value expression (strings stay strings)."""
        refs: list[ImportRef] = []
        seen: set[str] = set()
        for sub in ast.walk(node):
            if not isinstance(sub, ast.Name) or sub.id in seen:
                continue
            seen.add(sub.id)
            if sub.id in self.imports:
                refs.append(self.imports[sub.id])
            elif sub.id in self.top_level and self.module:
                refs.append(ImportRef(self.module, sub.id))
            elif sub.id not in _BUILTIN_NAMES:
                logger.debug("%s: cannot tell where %r comes from; no import emitted", self.module, sub.id)
        return tuple(refs)


@dataclass(frozen=True)
class _ClassDecl:
    qualified_name: str
    node: ast.ClassDef
    context: ModuleContext


class _Reflector:
    """Converts AST nodes of one module into metadata descriptors."""

    def __init__(self, context: ModuleContext) -> None:
        self.context = context

    def attribute(self, node: ast.AST) -> Optional[Attribute]:
        call = node if isinstance(node, ast.Call) else None
        dotted = _dotted_name(call.func if call else node)
        if dotted is None:
            return None

        module, _, kind = self.context.qualify(dotted).rpartition(".")
        members: list[tuple[str, str]] = []
        imports: dict[ImportRef, None] = {}
        if call is not None:
            names = positional_members(kind)
            values: list[tuple[str, ast.expr]] = []
            for i, arg in enumerate(call.args):
                if i >= len(names) or isinstance(arg, ast.Starred):
                    logger.debug("%s: ignoring positional argument %d of %s", self.context.module, i, kind)
                    continue
                values.append((names[i], arg))
            for kw in call.keywords:
                if kw.arg is None:
                    logger.debug("%s: ignoring **kwargs of %s", self.context.module, kind)
                    continue
                values.append((kw.arg, kw.value))
            for name, value in values:
                members.append((name, ast.unparse(value)))
                imports.update(dict.fromkeys(self.context.expr_imports(value)))

        return Attribute(
            kind=kind,
            members=tuple(members),
            module=module or MARKERS_MODULE,
            imports=tuple(imports),
        )

    def attributes(self, nodes: Iterable[ast.AST]) -> AttributeSet:
        return AttributeSet(tuple(a for a in map(self.attribute, nodes) if a is not None))

    def type_ref(self, node: ast.AST) -> TypeRef:
        return TypeRef(expr=ast.unparse(node), imports=self.context.imports_for(node))

    def parameter(self, arg: ast.arg, default: Optional[ast.expr], keyword_only: bool) -> ParameterDescriptor:
        annotation = arg.annotation
        attrs: list[Attribute] = []

        if isinstance(annotation, ast.Subscript):
            dotted = _dotted_name(annotation.value)
            if dotted and self.context.qualify(dotted).rpartition(".")[2] == "Annotated":
                elts = annotation.slice.elts if isinstance(annotation.slice, ast.Tuple) else [annotation.slice]
                annotation = elts[0]
                attrs.extend(a for a in map(self.attribute, elts[1:]) if a is not None)

        # FastAPI style: q: str = RequestParam()
        if isinstance(default, ast.Call):
            attr = self.attribute(default)
            if attr is not None and attr.kind in BINDING_KINDS:
                attrs.append(attr)

        return ParameterDescriptor(
            name=arg.arg,
            type=self.type_ref(annotation) if annotation is not None else TypeRef(""),
            attributes=AttributeSet(tuple(attrs)),
            keyword_only=keyword_only,
        )

    def method(self, node: ast.FunctionDef | ast.AsyncFunctionDef, owner: str) -> MethodDescriptor:
        attributes = self.attributes(node.decorator_list)
        args = node.args

        positional = [*args.posonlyargs, *args.args]
        defaults: list[Optional[ast.expr]] = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)
        if not attributes.has("staticmethod") and positional:
            # self / cls
            positional, defaults = positional[1:], defaults[1:]

        if args.vararg or args.kwarg:
            logger.debug("%s.%s: *args/**kwargs are not bindable and are dropped", owner, node.name)

        parameters = [self.parameter(a, d, keyword_only=False) for a, d in zip(positional, defaults)]
        parameters += [self.parameter(a, d, keyword_only=True) for a, d in zip(args.kwonlyargs, args.kw_defaults)]

        return MethodDescriptor(
            name=node.name,
            parameters=tuple(parameters),
            return_type=self.type_ref(node.returns) if node.returns is not None else None,
            attributes=attributes,
            is_async=isinstance(node, ast.AsyncFunctionDef),
            owner=owner,
            lineno=getattr(node, "lineno", 0) or 0,
        )


class TypeRegistry:
    """
    Reflected classes of every loaded module, keyed by qualified name.

    Classes are built lazily, bases first, so each CandidateType can hold its
    (immutable) supertype directly.
    """

    def __init__(self, opaque_bases: Iterable[str] = ()) -> None:
        self._decls: dict[str, _ClassDecl] = {}
        self._by_simple_name: dict[str, list[str]] = {}
        self._built: dict[str, CandidateType] = {}
        self._resolving: set[str] = set()
        self._opaque = set(opaque_bases)

    def add_source(self, source: str, module: str, *, path: str = "", is_package: bool = False) -> int:
        """Parse one module and register its top-level classes. Returns how many were found."""
        tree = ast.parse(source, filename=path or "<source>")
        context = ModuleContext.from_tree(tree, module, is_package=is_package, path=path)

        count = 0
        for stmt in tree.body:
            if not isinstance(stmt, ast.ClassDef):
                continue
            qualified = f"{module}.{stmt.name}" if module else stmt.name
            self._decls[qualified] = _ClassDecl(qualified, stmt, context)
            self._by_simple_name.setdefault(stmt.name, []).append(qualified)
            count += 1
        return count

    def add_file(self, path: Path, root: Path) -> int:
        module, is_package = module_name_for(path, root)
        try:
            source = path.read_text(encoding="utf-8")
            return self.add_source(source, module, path=str(path), is_package=is_package)
        except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as e:
            logger.warning("Skipping %s: %s", path, e)
            return 0

    def types(self, module: Optional[str] = None) -> list[CandidateType]:
        return [
            self.resolve(q)
            for q, decl in self._decls.items()
            if module is None or decl.context.module == module
        ]

    def resolve(self, qualified_name: str) -> CandidateType:
        built = self._built.get(qualified_name)
        if built is not None:
            return built

        decl = self._decls.get(qualified_name)
        if decl is None:
            raise KeyError(qualified_name)
        if qualified_name in self._resolving:
            raise MetadataInconsistency(f"inheritance cycle through {qualified_name}")

        self._resolving.add(qualified_name)
        try:
            built = self._build(decl)
        finally:
            self._resolving.discard(qualified_name)
        self._built[qualified_name] = built
        return built

    def _build(self, decl: _ClassDecl) -> CandidateType:
        reflector = _Reflector(decl.context)
        supertype, kind = self._supertype(decl)
        methods = tuple(
            reflector.method(stmt, decl.qualified_name)
            for stmt in decl.node.body
            if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef))
        )
        return CandidateType(
            qualified_name=decl.qualified_name,
            name=decl.node.name,
            kind=kind,
            methods=methods,
            attributes=reflector.attributes(decl.node.decorator_list),
            supertype=supertype,
            module=decl.context.module,
            path=decl.context.path,
        )

    def _supertype(self, decl: _ClassDecl) -> tuple[CandidateType, TypeKind]:
        kind: TypeKind = "class"
        chosen: Optional[str] = None

        for base in decl.node.bases:
            dotted = _dotted_name(base.value if isinstance(base, ast.Subscript) else base)
            if dotted is None:
                logger.debug("%s: ignoring dynamic base %s", decl.qualified_name, ast.unparse(base))
                continue
            qualified = decl.context.qualify(dotted)
            simple = qualified.rpartition(".")[2]
            if simple == _PROTOCOL_BASE:
                kind = "interface"
                continue
            if simple in _MIXIN_BASES:
                continue
            if chosen is None:
                chosen = qualified
            else:
                logger.debug("%s: only the first base (%s) is walked; ignoring %s", decl.qualified_name, chosen, qualified)

        if chosen is None:
            return ROOT_TYPE, kind

        simple = chosen.rpartition(".")[2]
        if chosen in self._opaque or simple in self._opaque:
            return ROOT_TYPE, kind
        if chosen in self._decls:
            return self.resolve(chosen), kind

        # re-exported through a package __init__, etc.; never the class itself
        # (class Resource(_Resource) wrapping an external Resource)
        matches = [
            q
            for q in self._by_simple_name.get(simple, [])
            if q != decl.qualified_name and q not in self._resolving
        ]
        if len(matches) == 1:
            logger.debug("%s: resolved base %s to %s by name", decl.qualified_name, chosen, matches[0])
            return self.resolve(matches[0]), kind

        return CandidateType(qualified_name=chosen, name=simple, kind="unresolved"), kind


def module_name_for(path: Path, root: Path) -> tuple[str, bool]:
    """acme/api/orders.py -> ("acme.api.orders", False); acme/api/__init__.py -> ("acme.api", True)"""
    rel = path.resolve().relative_to(root.resolve()).with_suffix("")
    parts = list(rel.parts)
    is_package = bool(parts) and parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    return ".".join(parts), is_package


def load_types_from_source(
    source: str,
    module: str = "app",
    *,
    is_package: bool = False,
    opaque_bases: Iterable[str] = (),
) -> list[CandidateType]:
    """
    Reflect every top-level class of a single module.
    Uses ast only; does not import/execute code.
    """
    registry = TypeRegistry(opaque_bases=opaque_bases)
    registry.add_source(source, module, is_package=is_package)
    return registry.types()


def load_types_from_files(
    paths: Iterable[str | Path],
    root: Path,
    *,
    opaque_bases: Iterable[str] = (),
) -> list[CandidateType]:
    registry = TypeRegistry(opaque_bases=opaque_bases)
    for p in paths:
        registry.add_file(Path(p), root)
    return registry.types()
