from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from clientexport.domain.config import GeneratorConfig
from clientexport.domain.errors import EmissionError
from clientexport.domain.models import REMOTE_CLIENT, Attribute, CandidateType
from clientexport.export.collector import collect_methods
from clientexport.export.naming import InterfaceNames, resolve_names
from clientexport.export.specs import GeneratedInterfaceSpec, interface_path
from clientexport.export.translator import translate_interface
from clientexport.printer.python_printer import InterfacePrinter, PythonInterfacePrinter

logger = logging.getLogger(__name__)


class WriteState(str, Enum):
    NOT_STARTED = "not_started"
    BASE_WRITTEN = "base_written"
    LEAF_CHECKED = "leaf_checked"
    DONE = "done"


@dataclass
class WriteOutcome:
    type_name: str
    names: InterfaceNames
    state: WriteState = WriteState.NOT_STARTED
    base_file: Optional[Path] = None
    leaf_file: Optional[Path] = None
    leaf_written: bool = False
    method_count: int = 0
    history: list[WriteState] = field(default_factory=lambda: [WriteState.NOT_STARTED])

    def advance(self, state: WriteState) -> None:
        self.state = state
        self.history.append(state)


def build_base_interface(candidate: CandidateType, names: InterfaceNames) -> GeneratedInterfaceSpec:
    methods = collect_methods(candidate, candidate.export_all)
    return translate_interface(candidate, names, methods.values())


def build_head_attribute(application_name: str, base_path: str, module: str) -> Attribute:
    members = [("name", repr(application_name))]
    if base_path.strip():
        members.append(("path", repr(base_path)))
    return Attribute(kind=REMOTE_CLIENT, members=tuple(members), module=module)


def build_leaf_interface(
    candidate: CandidateType,
    names: InterfaceNames,
    base: GeneratedInterfaceSpec,
    config: GeneratorConfig,
) -> GeneratedInterfaceSpec:
    return GeneratedInterfaceSpec(
        name=names.extract_name,
        package=names.package,
        head=build_head_attribute(config.application_name, names.base_path, config.client_module),
        supertypes=(base.ref,),
        origin=candidate.qualified_name,
        regenerated=False,
    )


class OutputWriter:
    """
    Persists the generated interfaces of one extraction target.

    The base interface is rewritten on every call. The leaf interface is
    written only when no file exists at its path yet; an existing leaf is
    never touched, even when the base has gained methods since.
    """

    def __init__(self, config: GeneratorConfig, printer: Optional[InterfacePrinter] = None) -> None:
        self.config = config
        self.printer = printer or PythonInterfacePrinter()

    def leaf_path(self, names: InterfaceNames) -> Path:
        return self.config.source_root / interface_path(names.package, names.extract_name)

    def write(self, candidate: CandidateType) -> WriteOutcome:
        names = resolve_names(candidate)
        outcome = WriteOutcome(type_name=candidate.qualified_name, names=names)

        base = build_base_interface(candidate, names)
        outcome.method_count = len(base.methods)
        outcome.base_file = self._emit(candidate, base)
        outcome.advance(WriteState.BASE_WRITTEN)
        logger.info("Wrote %s (%d methods) to %s", base.name, len(base.methods), outcome.base_file)

        leaf_file = self.leaf_path(names)
        outcome.leaf_file = leaf_file
        if leaf_file.exists():
            logger.info("Keeping existing %s at %s", names.extract_name, leaf_file)
            outcome.advance(WriteState.DONE)
            return outcome
        outcome.advance(WriteState.LEAF_CHECKED)

        leaf = build_leaf_interface(candidate, names, base, self.config)
        outcome.leaf_file = self._emit(candidate, leaf)
        outcome.leaf_written = True
        outcome.advance(WriteState.DONE)
        logger.info("Wrote %s to %s", leaf.name, outcome.leaf_file)
        return outcome

    def _emit(self, candidate: CandidateType, spec: GeneratedInterfaceSpec) -> Path:
        try:
            return self.printer.write(spec, self.config.source_root)
        except OSError as e:
            raise EmissionError(
                candidate.qualified_name,
                self.config.source_root / spec.relative_path(),
                e.strerror or str(e),
            ) from e
