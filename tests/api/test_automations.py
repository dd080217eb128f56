"""API tests for /api/v1/automations."""

from httpx import AsyncClient

from tests.factories import ORG_ID, OTHER_ORG_ID

HEADERS = {"X-Organization-ID": ORG_ID, "X-User-ID": "user-1"}


def _body(**overrides) -> dict:
    body = {
        "name": "Start project on approval",
        "trigger": {"objectType": "quote", "toStatus": "approved"},
        "nodes": [
            {
                "id": "c1",
                "type": "condition",
                "condition": {"field": "project_id", "operator": "exists"},
                "nextNodeId": "a1",
            },
            {
                "id": "a1",
                "type": "action",
                "action": {"targetType": "project", "newStatus": "in-progress"},
            },
        ],
        "isActive": True,
    }
    body.update(overrides)
    return body


async def _create(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/api/v1/automations", json=_body(**overrides), headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateAutomation:
    async def test_create_returns_stored_definition(self, client: AsyncClient) -> None:
        data = await _create(client)
        assert data["org_id"] == ORG_ID
        assert data["is_active"] is True
        assert data["created_by"] == "user-1"
        assert data["trigger"] == {
            "object_type": "quote",
            "from_status": None,
            "to_status": "approved",
        }
        assert data["nodes"][1] == {
            "id": "a1",
            "type": "action",
            "action": {
                "targetType": "project",
                "actionType": "update_status",
                "newStatus": "in-progress",
            },
        }
        assert data["trigger_count"] == 0

    async def test_requires_organization_header(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/automations", json=_body())
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_rejects_duplicate_node_ids(self, client: AsyncClient) -> None:
        node = {"id": "a1", "type": "action", "action": {"targetType": "self", "newStatus": "paid"}}
        response = await client.post(
            "/api/v1/automations", json=_body(nodes=[node, node]), headers=HEADERS
        )
        assert response.status_code == 400
        assert "Duplicate node id" in response.json()["message"]

    async def test_rejects_unknown_operator_at_schema_level(self, client: AsyncClient) -> None:
        nodes = [{"id": "c1", "type": "condition", "condition": {"field": "x", "operator": "regex"}}]
        response = await client.post("/api/v1/automations", json=_body(nodes=nodes), headers=HEADERS)
        assert response.status_code == 422


class TestManageAutomation:
    async def test_get_list_update_toggle_delete(self, client: AsyncClient) -> None:
        automation_id = (await _create(client))["id"]
        url = f"/api/v1/automations/{automation_id}"

        assert (await client.get(url, headers=HEADERS)).json()["id"] == automation_id
        listed = (await client.get("/api/v1/automations", headers=HEADERS)).json()
        assert [a["id"] for a in listed] == [automation_id]

        response = await client.patch(url, json={"name": "Renamed"}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

        response = await client.post(f"{url}/toggle", headers=HEADERS)
        assert response.json()["is_active"] is False
        active = (
            await client.get("/api/v1/automations", params={"active_only": True}, headers=HEADERS)
        ).json()
        assert active == []

        assert (await client.delete(url, headers=HEADERS)).status_code == 204
        assert (await client.get(url, headers=HEADERS)).status_code == 404

    async def test_empty_update_is_rejected(self, client: AsyncClient) -> None:
        automation_id = (await _create(client))["id"]
        response = await client.patch(
            f"/api/v1/automations/{automation_id}", json={}, headers=HEADERS
        )
        assert response.status_code == 400
        assert response.json()["message"] == "No valid updates provided"

    async def test_other_organization_gets_403(self, client: AsyncClient) -> None:
        automation_id = (await _create(client))["id"]
        response = await client.get(
            f"/api/v1/automations/{automation_id}",
            headers={"X-Organization-ID": OTHER_ORG_ID},
        )
        assert response.status_code == 403
        assert response.json()["error"] == "PERMISSION_DENIED"

    async def test_executions_listing(self, client: AsyncClient) -> None:
        automation_id = (await _create(client))["id"]
        response = await client.get(
            f"/api/v1/automations/{automation_id}/executions", headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json() == []
        response = await client.get(
            f"/api/v1/automations/{automation_id}/executions",
            params={"limit": 0},
            headers=HEADERS,
        )
        assert response.status_code == 422
