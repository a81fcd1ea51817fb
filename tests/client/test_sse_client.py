import pytest

from wordpress_mcp.client.sse import remove_request_params, resolve_endpoint


def test_resolve_relative_endpoint():
    assert (
        resolve_endpoint("http://localhost:3000/sse", "/message?sessionId=abc")
        == "http://localhost:3000/message?sessionId=abc"
    )


def test_resolve_endpoint_under_mount():
    assert (
        resolve_endpoint("http://localhost:3000/wp/sse", "/wp/message?sessionId=abc")
        == "http://localhost:3000/wp/message?sessionId=abc"
    )


@pytest.mark.parametrize(
    "data",
    [
        "http://evil.example.com/message?sessionId=abc",
        "https://localhost:3000/message?sessionId=abc",
        "http://localhost:4000/message?sessionId=abc",
    ],
)
def test_resolve_endpoint_rejects_other_origins(data: str):
    with pytest.raises(ValueError, match="Endpoint origin does not match"):
        resolve_endpoint("http://localhost:3000/sse", data)


def test_remove_request_params():
    assert remove_request_params("http://localhost:3000/sse?token=secret") == "http://localhost:3000/sse"
