from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from clientexport.domain.config import GeneratorConfig
from clientexport.domain.models import CandidateType
from clientexport.export.filters import is_extraction_target
from clientexport.export.naming import resolve_names
from clientexport.export.specs import GeneratedInterfaceSpec
from clientexport.extractors.controllers.reflector import load_types_from_files
from clientexport.orchestrator.writer import OutputWriter, WriteOutcome, build_base_interface
from clientexport.printer.python_printer import InterfacePrinter
from clientexport.repo.scanner import scan_python_files, select_candidate_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateResult:
    module_root: str
    files_scanned: int
    candidate_files: list[str]
    types_loaded: int
    targets: list[str]
    outcomes: list[WriteOutcome]


@dataclass(frozen=True)
class ReflectResult:
    module_root: Path
    py_files: list[str]
    candidate_files: list[str]
    types: list[CandidateType]

    @property
    def targets(self) -> list[CandidateType]:
        """Extraction targets; only classes declared in a candidate file can be one."""
        candidates = set(self.candidate_files)
        return [t for t in self.types if t.path in candidates and is_extraction_target(t)]


def module_root_for(repo_path: Path) -> Path:
    """Module names are computed relative to src/ when the repo uses a src layout."""
    src = repo_path / "src"
    return src if src.is_dir() else repo_path


def reflect_repo(
    repo_path: Path,
    *,
    max_files: int | None = None,
    opaque_bases: Iterable[str] = (),
) -> ReflectResult:
    module_root = module_root_for(repo_path.resolve())
    py_files = scan_python_files(module_root, max_files=max_files)
    candidates = select_candidate_files(py_files)

    # every file is loaded, not just candidates: base classes live anywhere
    types = load_types_from_files(py_files, module_root, opaque_bases=opaque_bases)
    logger.debug("Reflected %d classes from %d files under %s", len(types), len(py_files), module_root)

    return ReflectResult(module_root=module_root, py_files=py_files, candidate_files=candidates, types=types)


def run_round(
    types: Iterable[CandidateType],
    config: GeneratorConfig,
    printer: Optional[InterfacePrinter] = None,
) -> list[WriteOutcome]:
    """
    One build round: every extraction target, in order, through the writer.
    The first EmissionError aborts the round; targets already processed keep their files.
    """
    writer = OutputWriter(config, printer=printer)
    outcomes: list[WriteOutcome] = []
    for candidate in types:
        if not is_extraction_target(candidate):
            continue
        outcomes.append(writer.write(candidate))
    return outcomes


def plan_interfaces(types: Iterable[CandidateType]) -> list[GeneratedInterfaceSpec]:
    """Base interfaces the round would write, without touching the disk."""
    return [
        build_base_interface(candidate, resolve_names(candidate))
        for candidate in types
        if is_extraction_target(candidate)
    ]


def run_generate(
    repo_path: Path,
    config: GeneratorConfig,
    *,
    max_files: int | None = None,
    opaque_bases: Iterable[str] = (),
    printer: Optional[InterfacePrinter] = None,
) -> GenerateResult:
    repo_path = repo_path.resolve()
    reflected = reflect_repo(repo_path, max_files=max_files, opaque_bases=opaque_bases)
    targets = reflected.targets
    outcomes = run_round(targets, config, printer=printer)

    rel_candidates = [
        os.path.relpath(str(Path(p).resolve()), str(repo_path)) for p in reflected.candidate_files
    ]

    return GenerateResult(
        module_root=str(reflected.module_root),
        files_scanned=len(reflected.py_files),
        candidate_files=rel_candidates,
        types_loaded=len(reflected.types),
        targets=[t.qualified_name for t in targets],
        outcomes=outcomes,
    )
