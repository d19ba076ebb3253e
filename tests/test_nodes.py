"""
Tests for node editing operations.

Run with: python -m pytest tests/test_nodes.py
"""

import pytest
from fastapi import HTTPException

from logic.nodes import (
    NodeError,
    NodeNotFound,
    add_node,
    children_of,
    connect_nodes,
    delete_node,
    disconnect_nodes,
    find_node,
    generate_node_id,
    move_node,
    roots,
    update_node,
)


def make_nodes():
    return [
        {"id": "root", "content": "Root", "position": {"x": 0, "y": 0},
         "parent": None, "connections": ["b"], "color": "#3B82F6"},
        {"id": "a", "content": "A", "position": {"x": 10, "y": 0},
         "parent": "root", "connections": [], "color": "#3B82F6"},
        {"id": "b", "content": "B", "position": {"x": 20, "y": 0},
         "parent": "a", "connections": ["root"], "color": "#3B82F6"},
    ]


class TestAddNode:
    """Test the add_node function."""

    def test_defaults(self):
        nodes = add_node([])
        assert len(nodes) == 1
        node = nodes[0]
        assert node["id"].startswith("node-")
        assert node["content"] == "New Node"
        assert node["position"] == {"x": 0, "y": 0}
        assert node["parent"] is None
        assert node["connections"] == []
        assert node["color"] == "#3B82F6"

    def test_does_not_mutate_input(self):
        original = make_nodes()
        result = add_node(original, content="C", parent="a")
        assert len(original) == 3
        assert len(result) == 4
        assert result[-1]["parent"] == "a"

    def test_explicit_id_must_be_unique(self):
        with pytest.raises(NodeError):
            add_node(make_nodes(), node_id="a")

    def test_unknown_parent(self):
        with pytest.raises(NodeNotFound):
            add_node(make_nodes(), parent="missing")

    def test_invalid_color(self):
        with pytest.raises(HTTPException) as exc:
            add_node([], color="red")
        assert exc.value.status_code == 400

    def test_generated_ids_are_unique(self):
        nodes = []
        for _ in range(5):
            nodes = add_node(nodes)
        assert len({n["id"] for n in nodes}) == 5

    def test_generate_skips_taken_ids(self, monkeypatch):
        monkeypatch.setattr("logic.nodes.time.time", lambda: 1.0)
        assert generate_node_id([{"id": "node-1000"}]) == "node-1001"


class TestUpdateNode:
    """Test the update_node and move_node functions."""

    def test_update_content_and_color(self):
        result = update_node(make_nodes(), "a", {"content": "  Renamed ", "color": "#000000"})
        node = find_node(result, "a")
        assert node["content"] == "Renamed"
        assert node["color"] == "#000000"

    def test_illegal_field(self):
        with pytest.raises(NodeError):
            update_node(make_nodes(), "a", {"id": "z"})

    def test_empty_updates(self):
        with pytest.raises(NodeError):
            update_node(make_nodes(), "a", {})

    def test_unknown_node(self):
        with pytest.raises(NodeNotFound):
            update_node(make_nodes(), "zzz", {"content": "x"})

    def test_reparent_cycle_rejected(self):
        # b is a grandchild of root, so root cannot move under b
        with pytest.raises(NodeError):
            update_node(make_nodes(), "root", {"parent": "b"})

    def test_self_parent_rejected(self):
        with pytest.raises(NodeError):
            update_node(make_nodes(), "a", {"parent": "a"})

    def test_detach(self):
        result = update_node(make_nodes(), "b", {"parent": None})
        assert find_node(result, "b")["parent"] is None

    def test_move(self):
        original = make_nodes()
        result = move_node(original, "b", 55.5, -3)
        assert find_node(result, "b")["position"] == {"x": 55.5, "y": -3}
        assert find_node(original, "b")["position"] == {"x": 20, "y": 0}

    def test_move_rejects_non_numbers(self):
        with pytest.raises(HTTPException):
            move_node(make_nodes(), "b", "left", 0)


class TestDeleteNode:
    """Test the delete_node function."""

    def test_children_reattached_and_connections_stripped(self):
        result = delete_node(make_nodes(), "a")
        assert find_node(result, "a") is None
        assert find_node(result, "b")["parent"] == "root"

        result = delete_node(make_nodes(), "b")
        assert find_node(result, "root")["connections"] == []

    def test_delete_root_promotes_children(self):
        result = delete_node(make_nodes(), "root")
        assert find_node(result, "a")["parent"] is None
        assert find_node(result, "b")["connections"] == []

    def test_unknown_node(self):
        with pytest.raises(NodeNotFound):
            delete_node(make_nodes(), "zzz")


class TestConnections:
    """Test connect_nodes and disconnect_nodes."""

    def test_connect_is_idempotent(self):
        result = connect_nodes(make_nodes(), "a", "b")
        result = connect_nodes(result, "a", "b")
        assert find_node(result, "a")["connections"] == ["b"]

    def test_connect_self(self):
        with pytest.raises(NodeError):
            connect_nodes(make_nodes(), "a", "a")

    def test_connect_unknown(self):
        with pytest.raises(NodeNotFound):
            connect_nodes(make_nodes(), "a", "zzz")

    def test_disconnect(self):
        result = disconnect_nodes(make_nodes(), "root", "b")
        assert find_node(result, "root")["connections"] == []

    def test_disconnect_missing_connection(self):
        with pytest.raises(NodeNotFound):
            disconnect_nodes(make_nodes(), "a", "b")


def test_tree_helpers():
    nodes = make_nodes()
    assert [n["id"] for n in roots(nodes)] == ["root"]
    assert [n["id"] for n in children_of(nodes, "root")] == ["a"]

    # A dangling parent reference makes the node a root
    nodes[2]["parent"] = "gone"
    assert [n["id"] for n in roots(nodes)] == ["root", "b"]
