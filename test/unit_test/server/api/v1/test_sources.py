"""Tests for the capability source endpoints."""

async def _register(client, **fields):
    body = {"name": "issues", **fields}
    response = await client.post("/api/v1/sources", json=body)
    assert response.status_code == 201
    return response.json()


class TestRegister:
    async def test_register_hides_secrets(self, client):
        source = await _register(client, authMode="bearer", authConfig={"token": "sk_live"})

        assert source["name"] == "issues"
        assert source["transport"] == "http"
        assert source["authMode"] == "bearer"
        assert source["hasCredentials"] is True
        assert source["isActive"] is True
        assert "authConfig" not in source
        assert "sk_live" not in str(source)

    async def test_unknown_fields_are_rejected(self, client):
        response = await client.post("/api/v1/sources", json={"name": "x", "surprise": 1})

        assert response.status_code == 422

    async def test_get_and_list(self, client):
        source = await _register(client)

        assert (await client.get(f"/api/v1/sources/{source['id']}")).json()["id"] == source["id"]
        listed = (await client.get("/api/v1/sources")).json()
        assert [s["id"] for s in listed] == [source["id"]]

    async def test_unknown_source(self, client):
        response = await client.get("/api/v1/sources/missing")

        assert response.status_code == 404
        assert response.json()["error_type"] == "CapabilitySourceNotFoundError"


class TestSync:
    async def test_sync_description(self, client, issues_document):
        source = await _register(client)

        response = await client.post(f"/api/v1/sources/{source['id']}/sync", json={"description": issues_document})

        assert response.status_code == 200
        report = response.json()
        assert report["changed"] is True
        assert report["inserted"] == 3
        tools = (await client.get(f"/api/v1/sources/{source['id']}/tools")).json()
        by_key = {t["operationKey"]: t for t in tools}
        assert by_key["deleteIssue"]["riskLevel"] == "dangerous"
        assert by_key["deleteIssue"]["requiresConfirmation"] is True
        assert by_key["listIssues"]["riskLevel"] == "safe"
        stored = (await client.get(f"/api/v1/sources/{source['id']}")).json()
        assert stored["baseAddress"] == "https://mock.issues.example"
        assert stored["fingerprint"] == report["fingerprint"]

    async def test_http_source_needs_a_description(self, client):
        source = await _register(client)

        response = await client.post(f"/api/v1/sources/{source['id']}/sync")

        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidDescriptionError"

    async def test_invalid_description(self, client):
        source = await _register(client)

        response = await client.post(
            f"/api/v1/sources/{source['id']}/sync", json={"description": {"swagger": "2.0", "paths": {}}}
        )

        assert response.status_code == 400

    async def test_protocol_source(self, client, tool_server):
        source = await _register(client, name="files", transport="protocol-process", baseAddress="fake-tools")

        response = await client.post(f"/api/v1/sources/{source['id']}/sync")

        assert response.status_code == 200
        assert response.json()["inserted"] == 2
        tools = (await client.get(f"/api/v1/sources/{source['id']}/tools")).json()
        assert {t["operationKey"] for t in tools} == {"read_file", "delete_file"}
        session = (await client.get(f"/api/v1/sources/{source['id']}/session")).json()
        assert session["state"] == "ready"
        assert session["serverInfo"]["name"] == "fake-tools"

    async def test_deactivate_closes_the_session(self, client, tool_server):
        source = await _register(client, name="files", transport="protocol-process", baseAddress="fake-tools")
        await client.post(f"/api/v1/sources/{source['id']}/sync")

        response = await client.post(f"/api/v1/sources/{source['id']}/deactivate")

        assert response.json()["isActive"] is False
        assert tool_server.transports[0].closed is True
        active = (await client.get("/api/v1/sources", params={"activeOnly": True})).json()
        assert active == []


class TestTools:
    async def test_get_tool(self, client, issue_tools):
        response = await client.get(f"/api/v1/tools/{issue_tools['createIssue']}")

        assert response.status_code == 200
        tool = response.json()
        assert tool["method"] == "POST"
        assert tool["path"] == "/issues"
        assert tool["riskLevel"] == "moderate"

    async def test_unknown_tool(self, client):
        assert (await client.get("/api/v1/tools/missing")).status_code == 404

    async def test_risk_override(self, client, issue_tools):
        response = await client.patch(
            f"/api/v1/tools/{issue_tools['createIssue']}/risk", json={"riskLevel": "dangerous"}
        )

        assert response.status_code == 200
        tool = response.json()
        assert tool["riskLevel"] == "dangerous"
        assert tool["requiresConfirmation"] is True
        assert tool["riskOverridden"] is True
