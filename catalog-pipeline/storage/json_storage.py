"""Size-bounded JSON array files with rotation."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from config.constants import DEFAULT_MAX_FILE_SIZE_MB
from observability import get_logger

from .base import OutputFile, OutputFileSequence, SaveResult

logger = get_logger(__name__)


def read_json_array(path: Path) -> list[Any]:
    """Load a JSON array file; a missing or empty file is []."""
    if not path.exists() or path.stat().st_size == 0:
        return []
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return data


def atomic_write_json(path: Path, data: Any) -> None:
    """Write pretty JSON via a temp file and an atomic replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_file = path.with_name(f"{path.name}.tmp")

    try:
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_file, path)
    except OSError:
        if tmp_file.exists():
            tmp_file.unlink()
        raise


@dataclass
class SizeBoundedWriter:
    """Writes record lists as JSON arrays, rotating at `max_bytes`.

    append() grows the active file until its size reaches the ceiling;
    the next append starts `{stem}-1`, then `{stem}-2`, and so on. Earlier
    files are never read again, so memory stays bounded by one file. A
    file that is not a readable JSON array is left untouched and skipped.
    """

    max_bytes: int = DEFAULT_MAX_FILE_SIZE_MB * 1024 * 1024

    def active_file(self, base_path: Path) -> OutputFile:
        return OutputFileSequence(base_path, self.max_bytes).current_or_next()

    def append(self, records: list[dict[str, Any]], base_path: Path) -> SaveResult:
        """Append records to the active file of the family."""
        if not records:
            return SaveResult(saved=0)

        sequence = OutputFileSequence(base_path, self.max_bytes)
        target = sequence.current_or_next()
        while True:
            try:
                existing = read_json_array(target.path)
                break
            except ValueError as e:
                # Never rewrite a file we cannot parse; move past it
                logger.warning(f"Skipping unreadable {target.path.name}: {e}")
                target = sequence.current_or_next(target.sequence_number + 1)
        atomic_write_json(target.path, existing + list(records))

        if target.sequence_number and not existing:
            logger.info(f"Rotated output to {target.path.name}")
        logger.debug(f"Appended {len(records)} records to {target.path}")
        return SaveResult(saved=len(records), path=target.path)

    def write(self, records: list[dict[str, Any]], base_path: Path) -> SaveResult:
        """Replace the active file's content with `records`."""
        target = self.active_file(base_path)
        atomic_write_json(target.path, list(records))

        logger.info(f"Saved {len(records)} records to {target.path}")
        return SaveResult(saved=len(records), path=target.path)
