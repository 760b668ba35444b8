"""
Shared fixtures for coordinator API integration tests.

Each test gets a fresh CoordinatorServer on in-memory SQLite with the fake
clock injected, driven through FastAPI's TestClient so the app lifespan
(storage init, prune task) runs exactly as under uvicorn.
"""

import pytest
from fastapi.testclient import TestClient

from coordinator.server import CoordinatorServer

AGENT_KEY = "agent-secret"


@pytest.fixture
def server(clock):
    return CoordinatorServer(db_path=":memory:", agent_key=AGENT_KEY, clock=clock)


@pytest.fixture
def client(server):
    with TestClient(server.app) as c:
        yield c


@pytest.fixture
def agent_headers():
    return {"Authorization": f"Bearer {AGENT_KEY}"}


@pytest.fixture
def report_as_agent(client, agent_headers, make_report):
    """POST a report with valid agent credentials and return the response."""
    def _post(**kwargs):
        return client.post("/api/report", json=make_report(**kwargs), headers=agent_headers)
    return _post
