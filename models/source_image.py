from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SourceImage:
    """
    Raw, still-encoded input image as handed over by a caller.
    """
    data: bytes
    mime_type: str                 # "image/png" or "image/jpeg"
    name: str | None = None        # Original file name, used for download naming.
    path: Path | None = None       # Source on disk, when loaded from a file.

    @property
    def size(self) -> int:
        return len(self.data)
