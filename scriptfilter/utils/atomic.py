"""Atomic file replacement shared by the coordination and cache stores."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from scriptfilter.services.exceptions import StorageError


def write_text_atomic(path: Path, content: str) -> None:
    """Write ``content`` to a sibling temp file, then rename it over ``path``."""

    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f"{path.name}.tmp.",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(content)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise StorageError(f"cannot write {path}: {exc}") from exc


def read_text(path: Path) -> str | None:
    """Return the file content, or ``None`` when it does not exist."""

    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageError(f"cannot read {path}: {exc}") from exc


__all__ = ["read_text", "write_text_atomic"]
