"""
Tests for node editing and undo/redo endpoints.

Run with: python -m pytest tests/test_node_routes.py
"""

import time

import pytest

from logic.history import get_history_registry


@pytest.fixture
def mindmap(create_map):
    return create_map(
        nodes=[
            {"id": "root", "content": "Root"},
            {"id": "child", "content": "Child", "parent": "root"},
        ]
    )


def get_nodes(client, headers, map_id):
    response = client.get(f"/api/mindmaps/{map_id}", headers=headers)
    assert response.status_code == 200
    return {n["id"]: n for n in response.json()["nodes"]}


def test_add_node(client, auth_headers, mindmap):
    response = client.post(
        f"/api/mindmaps/{mindmap['_id']}/nodes",
        json={"content": "Idea", "position": {"x": 120, "y": 80}, "parent": "root"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    node = response.json()
    assert node["id"].startswith("node-")
    assert node["content"] == "Idea"
    assert node["parent"] == "root"

    nodes = get_nodes(client, auth_headers, mindmap["_id"])
    assert node["id"] in nodes


def test_add_node_with_unknown_parent(client, auth_headers, mindmap):
    response = client.post(
        f"/api/mindmaps/{mindmap['_id']}/nodes", json={"parent": "nope"}, headers=auth_headers
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Node not found"


def test_add_node_duplicate_id(client, auth_headers, mindmap):
    response = client.post(
        f"/api/mindmaps/{mindmap['_id']}/nodes", json={"id": "root"}, headers=auth_headers
    )
    assert response.status_code == 400


def test_patch_node(client, auth_headers, mindmap):
    response = client.patch(
        f"/api/mindmaps/{mindmap['_id']}/nodes/child",
        json={"content": "Renamed", "position": {"x": 5, "y": 6}, "color": "#ff0000"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    node = response.json()
    assert node["content"] == "Renamed"
    assert node["position"] == {"x": 5, "y": 6}
    assert node["color"] == "#ff0000"


def test_patch_node_errors(client, auth_headers, mindmap):
    url = f"/api/mindmaps/{mindmap['_id']}/nodes"

    assert client.patch(f"{url}/missing", json={"content": "x"}, headers=auth_headers).status_code == 404
    assert client.patch(f"{url}/child", json={"connections": []}, headers=auth_headers).status_code == 400
    assert client.patch(f"{url}/child", json={"color": "red"}, headers=auth_headers).status_code == 400


def test_delete_node_reparents_children(client, auth_headers, mindmap):
    response = client.delete(f"/api/mindmaps/{mindmap['_id']}/nodes/root", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "nodeCount": 1}

    nodes = get_nodes(client, auth_headers, mindmap["_id"])
    assert nodes["child"]["parent"] is None


def test_connect_and_disconnect(client, auth_headers, mindmap):
    url = f"/api/mindmaps/{mindmap['_id']}/nodes/child/connections"

    response = client.post(url, json={"target": "root"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["connections"] == ["root"]

    assert client.post(url, json={"target": "child"}, headers=auth_headers).status_code == 400
    assert client.post(url, json={"target": "ghost"}, headers=auth_headers).status_code == 404

    response = client.delete(f"{url}/root", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["connections"] == []

    assert client.delete(f"{url}/root", headers=auth_headers).status_code == 404


def test_node_routes_respect_ownership(client, other_headers, mindmap):
    response = client.post(
        f"/api/mindmaps/{mindmap['_id']}/nodes", json={"content": "x"}, headers=other_headers
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Mind map not found"


def test_undo_and_redo_node_edits(client, auth_headers, mindmap):
    map_id = mindmap["_id"]
    client.post(f"/api/mindmaps/{map_id}/nodes", json={"id": "extra", "content": "Extra"}, headers=auth_headers)
    client.patch(f"/api/mindmaps/{map_id}/nodes/extra", json={"content": "Edited"}, headers=auth_headers)

    response = client.post(f"/api/mindmaps/{map_id}/undo", headers=auth_headers)
    assert response.status_code == 200
    nodes = {n["id"]: n for n in response.json()["nodes"]}
    assert nodes["extra"]["content"] == "Extra"

    response = client.post(f"/api/mindmaps/{map_id}/undo", headers=auth_headers)
    assert [n["id"] for n in response.json()["nodes"]] == ["root", "child"]

    response = client.post(f"/api/mindmaps/{map_id}/undo", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Nothing to undo"

    response = client.post(f"/api/mindmaps/{map_id}/redo", headers=auth_headers)
    assert [n["id"] for n in response.json()["nodes"]] == ["root", "child", "extra"]

    response = client.post(f"/api/mindmaps/{map_id}/redo", headers=auth_headers)
    assert get_nodes(client, auth_headers, map_id)["extra"]["content"] == "Edited"

    response = client.post(f"/api/mindmaps/{map_id}/redo", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Nothing to redo"


def test_undo_full_update(client, auth_headers, mindmap):
    map_id = mindmap["_id"]
    client.put(f"/api/mindmaps/{map_id}", json={"title": "Changed", "nodes": []}, headers=auth_headers)

    response = client.post(f"/api/mindmaps/{map_id}/undo", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == mindmap["title"]
    assert data["nodes"] == mindmap["nodes"]


def test_new_edit_clears_redo(client, auth_headers, mindmap):
    map_id = mindmap["_id"]
    client.patch(f"/api/mindmaps/{map_id}/nodes/root", json={"content": "One"}, headers=auth_headers)
    client.post(f"/api/mindmaps/{map_id}/undo", headers=auth_headers)
    client.patch(f"/api/mindmaps/{map_id}/nodes/root", json={"content": "Two"}, headers=auth_headers)

    response = client.post(f"/api/mindmaps/{map_id}/redo", headers=auth_headers)
    assert response.status_code == 400


def test_node_edit_refreshes_updated_at(client, auth_headers, mindmap):
    map_id = mindmap["_id"]
    time.sleep(0.01)

    response = client.patch(
        f"/api/mindmaps/{map_id}/nodes/child", json={"content": "Later"}, headers=auth_headers
    )
    assert response.status_code == 200

    data = client.get(f"/api/mindmaps/{map_id}", headers=auth_headers).json()
    assert data["updatedAt"] > mindmap["updatedAt"]
    assert data["createdAt"] == mindmap["createdAt"]


def test_deleting_map_drops_history(client, auth_headers, mindmap, create_map):
    map_id = mindmap["_id"]
    user_id = client.get("/api/auth/profile", headers=auth_headers).json()["_id"]
    registry = get_history_registry()

    client.patch(f"/api/mindmaps/{map_id}/nodes/root", json={"content": "Edited"}, headers=auth_headers)
    assert (user_id, map_id) in registry

    response = client.delete(f"/api/mindmaps/{map_id}", headers=auth_headers)
    assert response.status_code == 200
    assert (user_id, map_id) not in registry

    response = client.post(f"/api/mindmaps/{map_id}/undo", headers=auth_headers)
    assert response.status_code == 404

    recreated = create_map(title=mindmap["title"])
    response = client.post(f"/api/mindmaps/{recreated['_id']}/undo", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Nothing to undo"
