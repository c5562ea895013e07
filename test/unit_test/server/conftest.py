import copy
from typing import AsyncGenerator, List

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from action_relay.core.config import Settings
from action_relay.server.container import RelayServices, build_services
from action_relay.server.main import create_app

_ISSUES_DOCUMENT = {
    "openapi": "3.0.3",
    "info": {"title": "Issues", "version": "1"},
    "servers": [{"url": "https://mock.issues.example"}],
    "paths": {
        "/issues": {
            "get": {
                "operationId": "listIssues",
                "summary": "List issues",
                "parameters": [{"name": "limit", "in": "query", "schema": {"type": "integer"}}],
            },
            "post": {
                "operationId": "createIssue",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "properties": {"title": {"type": "string"}},
                                "required": ["title"],
                            }
                        }
                    }
                },
            },
        },
        "/issues/{id}": {
            "delete": {
                "operationId": "deleteIssue",
                "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
            },
        },
    },
}


@pytest.fixture
def issues_document() -> dict:
    return copy.deepcopy(_ISSUES_DOCUMENT)


class TargetApi:
    """MockTransport handler standing in for every outbound HTTP target."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "DELETE":
            return httpx.Response(204)
        if request.method == "POST":
            return httpx.Response(201, json={"id": "iss_3", "title": "New"})
        return httpx.Response(200, json={"object": "list", "data": [{"id": "iss_1"}], "has_more": False})


@pytest.fixture
def target_api() -> TargetApi:
    return TargetApi()


@pytest_asyncio.fixture
async def services(session_factory, target_api, tool_server) -> AsyncGenerator[RelayServices, None]:
    settings = Settings(_env_file=None, protocol_request_timeout=1.0, protocol_handshake_timeout=1.0)
    async with httpx.AsyncClient(transport=httpx.MockTransport(target_api)) as http_client:
        services = build_services(
            settings, session_factory, http_client=http_client, transport_factory=tool_server.transport
        )
        yield services
        await services.aclose()


@pytest_asyncio.fixture
async def client(services) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the application with pre-built services."""
    app = create_app(services=services)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def issue_tools(client, issues_document) -> dict:
    """Register and sync the issue tracker; map operation keys to tool ids."""
    response = await client.post("/api/v1/sources", json={"name": "issues", "authMode": "none"})
    source_id = response.json()["id"]
    await client.post(f"/api/v1/sources/{source_id}/sync", json={"description": issues_document})
    tools = (await client.get(f"/api/v1/sources/{source_id}/tools")).json()
    return {tool["operationKey"]: tool["id"] for tool in tools}
