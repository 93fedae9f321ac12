from __future__ import annotations

from pathlib import Path

import orjson
import pytest
from pydantic import ValidationError

from adapters.filesystem.scene_repository import FileSystemSceneRepository, extract_root_payloads
from tests.helpers.scene_fixtures import scene_fixture_path


def _write(path: Path, payload: object) -> Path:
    path.write_bytes(orjson.dumps(payload))
    return path


def test_load_nodes_export() -> None:
    roots = FileSystemSceneRepository().load(scene_fixture_path("login_screen.json"))

    assert [root.id for root in roots] == ["1:2"]
    root = roots[0]
    assert root.absolute_bounding_box is not None
    assert root.absolute_bounding_box.width == 375
    frame = root.children[0]
    assert frame.layout_mode == "VERTICAL"
    email = frame.children[1]
    assert email.component_properties["State"].value == "Default"
    assert "fills" in email.bound_variables


def test_extract_root_payloads_shapes() -> None:
    node = {"id": "1:1", "type": "FRAME"}

    assert extract_root_payloads({"document": node}) == [node]
    assert extract_root_payloads({"nodes": {"1:1": {"document": node}}}) == [node]
    assert extract_root_payloads([node, "junk"]) == [node]
    assert extract_root_payloads(node) == [node]


def test_extract_root_payloads_rejects_scalars() -> None:
    with pytest.raises(ValueError, match="JSON object or array"):
        extract_root_payloads("frame")


def test_extract_root_payloads_rejects_entry_without_document() -> None:
    with pytest.raises(ValueError, match="has no document"):
        extract_root_payloads({"nodes": {"1:1": {"err": "not found"}}})


def test_load_file_export(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "file.json",
        {
            "name": "Design",
            "document": {
                "id": "0:0",
                "type": "DOCUMENT",
                "children": [{"id": "0:1", "type": "CANVAS", "name": "Page 1"}],
            },
        },
    )

    (root,) = FileSystemSceneRepository().load(path)

    assert root.type == "DOCUMENT"
    assert root.children[0].name == "Page 1"


def test_load_rejects_node_without_type(tmp_path: Path) -> None:
    path = _write(tmp_path / "bad.json", {"id": "1:1", "name": "Broken"})

    with pytest.raises(ValidationError):
        FileSystemSceneRepository().load(path)


def test_load_reports_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{"id": "1:1", "type": ', encoding="utf-8")

    with pytest.raises(ValueError, match="invalid JSON"):
        FileSystemSceneRepository().load(path)
