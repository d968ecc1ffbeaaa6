"""
Shared test fixtures and helpers for the Trellis test suite.
"""

import pytest
from typing import Any, List, Optional

import httpx

from trellis.controller.registry import MetadataRegistry
from trellis.di.core import Container, InjectableRegistry
from trellis.middleware import HandlerChain
from trellis.request import Request
from trellis.response import Response


# ============================================================================
# Request Helpers
# ============================================================================

def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    body: Any = None,
    query: Optional[dict] = None,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> Request:
    return Request(method, path, body=body, query=query, params=params, headers=headers)


async def run_handler(handler, request: Request, response: Optional[Response] = None) -> Response:
    """Run a single compiled handler the way the router does."""
    response = response if response is not None else Response()
    chain = HandlerChain([handler], request, response)
    await chain.run()
    return response


def client_for(app) -> httpx.AsyncClient:
    """httpx client talking to an ASGI app in-process."""
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def di_container() -> Container:
    """Fresh singleton cache over the process-wide injectable side-table."""
    return Container()


@pytest.fixture
def injectable_registry() -> InjectableRegistry:
    """Isolated injectable side-table."""
    return InjectableRegistry()


@pytest.fixture
def isolated_container(injectable_registry) -> Container:
    return Container(injectable_registry)


@pytest.fixture
def registry() -> MetadataRegistry:
    """Isolated metadata side-table for the explicit registration API."""
    return MetadataRegistry()


@pytest.fixture
def calls() -> List[str]:
    """Shared call log for ordering assertions."""
    return []
