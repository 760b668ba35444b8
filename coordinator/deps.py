"""Dependency helpers for router modules."""

from fastapi import Header
from starlette.requests import Request


def get_server(request: Request):
    return request.app.state.server


async def require_agent(request: Request, authorization: str = Header(default="")):
    get_server(request).auth.require(authorization)
