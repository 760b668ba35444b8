"""
test_auth.py - Agent bearer-token checks.
"""

import pytest
from fastapi import HTTPException

from coordinator.auth import AgentAuth


class TestAgentAuth:

    def test_open_when_no_key(self):
        auth = AgentAuth("")
        assert not auth.enabled
        assert auth.is_authorized("")
        assert auth.is_authorized("Bearer anything")

    def test_valid_bearer(self):
        auth = AgentAuth("s3cret")
        assert auth.enabled
        assert auth.is_authorized("Bearer s3cret")

    @pytest.mark.parametrize("header", [
        "",
        "s3cret",
        "Bearer",
        "Bearer ",
        "Bearer wrong",
        "bearer s3cret",
        "Basic s3cret",
        "Bearer s3cret ",
    ])
    def test_rejected_headers(self, header):
        assert not AgentAuth("s3cret").is_authorized(header)

    def test_require_raises_401_with_detail(self):
        with pytest.raises(HTTPException) as exc:
            AgentAuth("s3cret").require("Bearer nope")
        assert exc.value.status_code == 401
        assert "Bearer" in exc.value.detail

    def test_require_passes(self):
        AgentAuth("s3cret").require("Bearer s3cret")
