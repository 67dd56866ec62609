from __future__ import annotations

import os
from pathlib import Path


# Directories never holding controller sources
IGNORED_DIRS = {
    ".git",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    "dist",
    "build",
    ".mypy_cache",
    ".ruff_cache",
    ".pytest_cache",
    ".tox",
}


def should_ignore_dir(dir_path: Path) -> bool:
    return dir_path.name in IGNORED_DIRS or dir_path.name.endswith(".egg-info")


# Text that must appear in a file declaring an extraction target
CANDIDATE_NEEDLES = ["client_export"]


def scan_python_files(repo_path: Path, max_files: int | None = None) -> list[str]:
    """
    Return absolute paths (as strings) of the .py files under repo_path.
    Deterministic: directories and files are visited in sorted order.
    """
    out: list[str] = []
    for root, dirs, files in _walk(repo_path):
        root_p = Path(root)

        # prune ignored dirs
        dirs[:] = sorted(d for d in dirs if not should_ignore_dir(root_p / d))

        for f in sorted(files):
            if f.endswith(".py"):
                out.append(str((root_p / f).resolve()))
                if max_files is not None and len(out) >= max_files:
                    return out
    return out


def _walk(repo_path: Path):
    # Separate helper to make unit testing easier (can be mocked)
    return os.walk(repo_path)


def _file_contains_any(path: str, needles: list[str], max_bytes: int = 500_000) -> bool:
    try:
        with open(path, "rb") as f:
            data = f.read(max_bytes)
    except OSError:
        return False
    text = data.decode("utf-8", errors="ignore")
    return any(n in text for n in needles)


def select_candidate_files(py_files: list[str]) -> list[str]:
    """Files that look like they declare client_export controllers. Text match only."""
    return [p for p in py_files if _file_contains_any(p, CANDIDATE_NEEDLES)]
