from __future__ import annotations

from pathlib import Path


class ClientExportError(Exception):
    """Base class for every failure raised by clientexport."""


class ConfigurationError(ClientExportError):
    """A required build option is missing or invalid. Raised before any generation."""


class MetadataInconsistency(ClientExportError):
    """
    The reflected metadata breaks an invariant the engine relies on:
    an unresolvable supertype, an unexpected node kind, an ancestry chain
    that is cyclic or too deep, or a malformed client_export declaration.
    """


class EmissionError(ClientExportError):
    """Writing a generated file failed. The original OSError is chained as __cause__."""

    def __init__(self, type_name: str, path: Path, message: str) -> None:
        super().__init__(f"{type_name}: cannot write {path}: {message}")
        self.type_name = type_name
        self.path = path
