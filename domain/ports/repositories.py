from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

from domain.models import SceneNode


class SceneRepository(Protocol):
    def load(self, path: Path) -> Sequence[SceneNode]: ...


class AnnotationRepository(Protocol):
    def save_image(self, data: bytes, path: Path) -> None: ...

    def save_marks(self, payload: Mapping[str, Any], path: Path) -> None: ...
