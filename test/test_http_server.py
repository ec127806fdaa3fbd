import pytest
from starlette.testclient import TestClient

from gdc_http_server import NOT_FOUND_TEXT, create_app


@pytest.fixture
def http_client():
    # No context manager: the MCP session manager lifespan is not needed for routing checks.
    return TestClient(create_app())


@pytest.mark.parametrize("path", ["/", "/graphql", "/mcpx", "/ssefoo"])
def test_unknown_paths_return_plaintext_404(http_client, path):
    response = http_client.get(path)

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == NOT_FOUND_TEXT


def test_not_found_text_lists_both_transports():
    assert "- /mcp (for Streamable HTTP transport)" in NOT_FOUND_TEXT
    assert "- /sse (for Server-Sent Events transport)" in NOT_FOUND_TEXT


def test_transport_routes_are_mounted():
    app = create_app()
    paths = {getattr(route, "path", None) for route in app.routes}

    assert "/mcp" in paths
    assert "/sse" in paths
