"""Filesystem writer for the generated models module."""

from __future__ import annotations

import logging
from pathlib import Path
import subprocess
import sys

logger = logging.getLogger(__name__)

_GENERATED_RUFF_IGNORE_CODES: tuple[str, ...] = (
    "E501",
    "E741",
)


class WriteError(RuntimeError):
    """Raised when output files cannot be written."""


def write_models_module(
    *,
    output_dir: Path,
    filename: str,
    source: str,
    overwrite: bool = False,
) -> Path:
    """Write the rendered models module into the output directory.

    Args:
        output_dir (Path): Directory to write into; created when missing.
        filename (str): File name of the generated module.
        source (str): Rendered Python source.
        overwrite (bool): Whether an existing file may be replaced.

    Returns:
        Path: Path of the written module.
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(f"Failed to create output directory {output_dir}: {exc}") from exc

    module_path = output_dir / filename
    if module_path.exists() and not overwrite:
        raise WriteError(f"Output file already exists: {module_path} (use --overwrite to replace it)")
    _write_file(module_path, source)
    return module_path


def format_generated_module(*, module_path: Path) -> None:
    """Run Ruff auto-fixes and formatter against the generated module.

    Args:
        module_path (Path): Generated module to format in place.
    """
    logger.debug("Formatting %s with ruff", module_path)
    _run_ruff(module_path=module_path, args=("format", str(module_path)))
    _run_ruff(
        module_path=module_path,
        args=(
            "check",
            "--fix",
            "--ignore",
            ",".join(_GENERATED_RUFF_IGNORE_CODES),
            str(module_path),
        ),
    )
    _run_ruff(module_path=module_path, args=("format", str(module_path)))


def _run_ruff(*, module_path: Path, args: tuple[str, ...]) -> None:
    command = [sys.executable, "-m", "ruff", *args]
    command_desc = " ".join(args[:1])
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute ruff {command_desc} for {module_path}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"ruff {command_desc} failed for {module_path}: {error_text}") from exc


def _write_file(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Failed to write file {path}: {exc}") from exc
