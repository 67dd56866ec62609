from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Protocol

from clientexport.domain.models import Attribute, ImportRef, TypeRef
from clientexport.export.specs import GeneratedInterfaceSpec, GeneratedMethod, GeneratedParameter

MAX_LINE = 88
INDENT = "    "

_BASE_BANNER = (
    "# Generated by clientexport from {origin}.",
    "# Do not edit: this file is rewritten on every build.",
)
_LEAF_BANNER = (
    "# Generated by clientexport from {origin}.",
    "# Written once and never overwritten; safe to customize.",
)


class InterfacePrinter(Protocol):
    def write(self, spec: GeneratedInterfaceSpec, source_root: Path) -> Path:
        """Write the interface under source_root and return the file path. Raises OSError."""
        ...


class _Imports:
    def __init__(self) -> None:
        self._plain: set[tuple[str, Optional[str]]] = set()
        self._from: dict[str, set[tuple[str, Optional[str]]]] = {}

    def add(self, ref: ImportRef) -> None:
        if ref.name is None:
            self._plain.add((ref.module, ref.alias))
        else:
            self._from.setdefault(ref.module, set()).add((ref.name, ref.alias))

    def add_name(self, module: str, name: str) -> None:
        self.add(ImportRef(module, name))

    def add_attribute(self, attr: Attribute) -> None:
        self.add_name(attr.module, attr.kind)
        for imp in attr.imports:
            self.add(imp)

    def add_type(self, ref: Optional[TypeRef]) -> None:
        if ref is not None:
            for imp in ref.imports:
                self.add(imp)

    def render(self) -> list[str]:
        lines = [ImportRef(m, None, a).render() for m, a in sorted(self._plain, key=lambda x: (x[0], x[1] or ""))]
        for module in sorted(self._from):
            names = sorted(self._from[module], key=lambda x: (x[0], x[1] or ""))
            parts = [n if not a or a == n else f"{n} as {a}" for n, a in names]
            line = f"from {module} import {', '.join(parts)}"
            if len(line) > MAX_LINE:
                body = "".join(f"{INDENT}{p},\n" for p in parts)
                line = f"from {module} import (\n{body})"
            lines.append(line)
        return lines


def render_attribute(attr: Attribute) -> str:
    args = []
    value = attr.member("value")
    if value is not None:
        args.append(value)
    args.extend(f"{name}={expr}" for name, expr in attr.members if name != "value")
    return f"{attr.kind}({', '.join(args)})"


def _render_parameter(param: GeneratedParameter) -> str:
    if param.attributes:
        metadata = ", ".join(render_attribute(a) for a in param.attributes)
        return f"{param.name}: Annotated[{param.type.expr or 'Any'}, {metadata}]"
    if param.type.expr:
        return f"{param.name}: {param.type.expr}"
    return param.name


def _render_method(method: GeneratedMethod) -> list[str]:
    lines = [f"{INDENT}@{render_attribute(a)}" for a in method.attributes]

    params = ["self"]
    star_added = False
    for p in method.parameters:
        if p.keyword_only and not star_added:
            params.append("*")
            star_added = True
        params.append(_render_parameter(p))

    prefix = f"{INDENT}{'async ' if method.is_async else ''}def {method.name}("
    suffix = f") -> {method.return_type.expr}: ..." if method.return_type else "): ..."

    one_line = prefix + ", ".join(params) + suffix
    if len(one_line) <= MAX_LINE:
        lines.append(one_line)
    else:
        lines.append(prefix)
        lines.extend(f"{INDENT * 2}{p}," for p in params)
        lines.append(INDENT + suffix)
    return lines


def _collect_imports(spec: GeneratedInterfaceSpec) -> _Imports:
    imports = _Imports()
    imports.add_name("typing", "Protocol")
    if spec.head is not None:
        imports.add_attribute(spec.head)
    for ref in spec.supertypes:
        imports.add_name(ref.module, ref.name)

    for method in spec.methods:
        for attr in method.attributes:
            imports.add_attribute(attr)
        imports.add_type(method.return_type)
        for p in method.parameters:
            imports.add_type(p.type)
            if p.attributes:
                imports.add_name("typing", "Annotated")
                if not p.type.expr:
                    imports.add_name("typing", "Any")
            for attr in p.attributes:
                imports.add_attribute(attr)
    return imports


def render_interface(spec: GeneratedInterfaceSpec) -> str:
    """Deterministic: the same spec always renders to the same text."""
    banner = _BASE_BANNER if spec.regenerated else _LEAF_BANNER
    lines = [line.format(origin=spec.origin or spec.name) for line in banner]
    lines.append("")
    lines.extend(_collect_imports(spec).render())
    lines.extend(["", ""])

    if spec.head is not None:
        lines.append(f"@{render_attribute(spec.head)}")
    bases = [ref.name for ref in spec.supertypes] + ["Protocol"]
    lines.append(f"class {spec.name}({', '.join(bases)}):")

    if not spec.methods:
        lines.append(f"{INDENT}pass")
    for i, method in enumerate(spec.methods):
        if i:
            lines.append("")
        lines.extend(_render_method(method))

    return "\n".join(lines) + "\n"


class PythonInterfacePrinter:
    """Renders interfaces as typing.Protocol modules, one interface per file."""

    def render(self, spec: GeneratedInterfaceSpec) -> str:
        return render_interface(spec)

    def write(self, spec: GeneratedInterfaceSpec, source_root: Path) -> Path:
        target = source_root / spec.relative_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.render(spec), encoding="utf-8", newline="\n")
        return target


def render_all(specs: Iterable[GeneratedInterfaceSpec]) -> dict[str, str]:
    return {str(spec.relative_path()): render_interface(spec) for spec in specs}
