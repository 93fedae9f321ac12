from __future__ import annotations

from domain.services.summarize_scene_tree import build_condensed_tree_summary
from tests.helpers.scene_fixtures import load_scene_fixture, make_node


def test_summary_lists_every_node_within_depth() -> None:
    roots = load_scene_fixture("login_screen.json")

    lines = build_condensed_tree_summary(roots).splitlines()

    assert lines[0] == '[1:2] "Login" FRAME 375x812 children=7'
    assert lines[1] == '  [1:3] "Frame 12" FRAME 327x170 children=3'
    assert '      [1:6] "Label" TEXT 60x24 children=0' in lines
    assert len(lines) == 15


def test_summary_collapses_children_below_max_depth() -> None:
    roots = load_scene_fixture("login_screen.json")

    lines = build_condensed_tree_summary(roots, max_depth=1).splitlines()

    assert "    ... 3 children: 1 TEXT, 2 INSTANCE" in lines
    assert "    ... 1 children: 1 INSTANCE" in lines
    assert not any("[1:4]" in line for line in lines)


def test_summary_at_depth_zero_only_shows_roots() -> None:
    child = make_node("c", "TEXT", "Caption")
    root = make_node("r", "FRAME", "Screen", box=(0, 0, 99.6, 10.2), children=[child])

    summary = build_condensed_tree_summary([root], max_depth=0)

    assert summary == '[r] "Screen" FRAME 100x10 children=1\n  ... 1 children: 1 TEXT'


def test_summary_without_box() -> None:
    node = make_node("n", "SECTION", "Flows", box=None)

    assert build_condensed_tree_summary([node]) == '[n] "Flows" SECTION 0x0 children=0'
