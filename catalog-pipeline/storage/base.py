"""Output file naming, rotation and save results."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SaveResult:
    """Result of a save operation."""

    saved: int = 0
    path: Path | None = None


@dataclass(frozen=True)
class OutputFile:
    """One member of a rotated file family.

    Sequence 0 is the base path itself; sequence N is `{stem}-{N}{suffix}`.
    Example: products.json, products-1.json, products-2.json
    """

    base_path: Path
    sequence_number: int = 0

    @property
    def path(self) -> Path:
        if self.sequence_number == 0:
            return self.base_path
        return self.base_path.with_name(
            f"{self.base_path.stem}-{self.sequence_number}{self.base_path.suffix}"
        )

    @property
    def exists(self) -> bool:
        return self.path.exists()

    @property
    def size_bytes(self) -> int:
        """Current size on disk (0 when the file does not exist)."""
        try:
            return os.path.getsize(self.path)
        except FileNotFoundError:
            return 0

    def next(self) -> "OutputFile":
        return OutputFile(self.base_path, self.sequence_number + 1)


@dataclass(frozen=True)
class OutputFileSequence:
    """Chooses the active file of a rotated family under a size ceiling."""

    base_path: Path
    max_bytes: int

    def current_or_next(self, start: int = 0) -> OutputFile:
        """First file from sequence `start` on that is missing or strictly below the ceiling."""
        candidate = OutputFile(self.base_path, start)
        while candidate.exists and candidate.size_bytes >= self.max_bytes:
            candidate = candidate.next()
        return candidate
