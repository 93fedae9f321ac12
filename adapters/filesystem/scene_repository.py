from __future__ import annotations

from pathlib import Path
from typing import Any

from adapters.filesystem.json_utils import load_json
from domain.models import SceneNode
from domain.ports.repositories import SceneRepository


def extract_root_payloads(data: Any) -> list[dict[str, Any]]:
    """Find the node trees inside a design-tool export.

    Understands a full file export (``{"document": ...}``), a nodes export
    (``{"nodes": {id: {"document": ...}}}``), a single node and a list of nodes.
    """
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    if not isinstance(data, dict):
        msg = f"Expected a JSON object or array, got {type(data).__name__}"
        raise ValueError(msg)
    if isinstance(data.get("nodes"), dict):
        roots: list[dict[str, Any]] = []
        for node_id, entry in data["nodes"].items():
            if not isinstance(entry, dict) or not isinstance(entry.get("document"), dict):
                msg = f"Node entry {node_id!r} has no document"
                raise ValueError(msg)
            roots.append(entry["document"])
        return roots
    if isinstance(data.get("document"), dict):
        return [data["document"]]
    return [data]


class FileSystemSceneRepository(SceneRepository):
    def load(self, path: Path) -> list[SceneNode]:
        return [
            SceneNode.model_validate(payload)
            for payload in extract_root_payloads(load_json(path))
        ]
