from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from filelock import FileLock

from adapters.filesystem.json_utils import write_bytes_atomic, write_json_atomic
from domain.ports.repositories import AnnotationRepository

BATCH_IMAGE_PREFIX = "batch_"
BATCH_IMAGE_SUFFIXES = frozenset({".png", ".svg"})
MARKS_FILE = "marks.json"


def batch_image_name(index: int, suffix: str) -> str:
    return f"{BATCH_IMAGE_PREFIX}{index + 1:03d}{suffix}"


def is_annotation_output(path: Path) -> bool:
    name = path.name
    if name in {MARKS_FILE, f"{MARKS_FILE}.lock"}:
        return True
    return name.startswith(BATCH_IMAGE_PREFIX) and path.suffix.lower() in BATCH_IMAGE_SUFFIXES


class FileSystemAnnotationRepository(AnnotationRepository):
    def save_image(self, data: bytes, path: Path) -> None:
        write_bytes_atomic(path, data)

    def save_marks(self, payload: Mapping[str, Any], path: Path) -> None:
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(str(lock_path)):
            write_json_atomic(path, dict(payload))

    def clear(self, directory: Path) -> int:
        """Remove batch images and the marks file written by earlier runs.

        Anything else in the directory, including input renders and scenes,
        is left alone.
        """
        if not directory.exists():
            return 0
        removed = 0
        for path in directory.iterdir():
            if path.is_file() and is_annotation_output(path):
                path.unlink()
                removed += 1
        return removed
