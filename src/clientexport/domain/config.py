from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from clientexport.domain.errors import ConfigurationError
from clientexport.domain.models import MARKERS_MODULE

APPLICATION_NAME_OPTION = "application_name"
EXPORT_MODULE_PATH_OPTION = "export_module_path"
EXPORT_BASE_DIRECTORY = "src"


class GeneratorConfig(BaseModel):
    """
    Build options for one invocation. Constructed once and passed to every
    component explicitly; nothing reads the environment behind its back.
    """

    model_config = ConfigDict(frozen=True)

    application_name: str
    export_module_path: Path
    client_module: str = MARKERS_MODULE

    @field_validator("application_name")
    @classmethod
    def _non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("export_module_path")
    @classmethod
    def _absolute(cls, v: Path) -> Path:
        if not v.is_absolute():
            raise ValueError(f"must be an absolute path, got {v}")
        return v

    @property
    def source_root(self) -> Path:
        return self.export_module_path / EXPORT_BASE_DIRECTORY

    @classmethod
    def from_options(cls, options: Mapping[str, Optional[str]], **extra: str) -> GeneratorConfig:
        missing = [
            key
            for key in (APPLICATION_NAME_OPTION, EXPORT_MODULE_PATH_OPTION)
            if not (options.get(key) or "").strip()
        ]
        if missing:
            raise ConfigurationError(
                "missing required option(s): " + ", ".join(f"please set {k}" for k in missing)
            )

        try:
            return cls(
                application_name=options[APPLICATION_NAME_OPTION],
                export_module_path=Path(str(options[EXPORT_MODULE_PATH_OPTION])).expanduser(),
                **extra,
            )
        except ValidationError as e:
            raise ConfigurationError(f"invalid build options: {e}") from e
