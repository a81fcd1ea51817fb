"""Tests for httpx utility functions."""

import httpx

from wordpress_mcp.utilities.httpx_utils import create_http_client


class TestCreateHttpClient:
    def test_default_settings(self):
        client = create_http_client()

        assert client.follow_redirects is True
        assert client.timeout.connect == 30.0
        assert client.timeout.read == 30.0

    def test_custom_parameters(self):
        auth = httpx.BasicAuth("editor", "secret")
        timeout = httpx.Timeout(connect=5.0, read=10.0, write=15.0, pool=20.0)

        client = create_http_client(headers={"X-Custom": "value"}, timeout=timeout, auth=auth)

        assert client.headers["X-Custom"] == "value"
        assert client.timeout.read == 10.0
        assert client.auth is auth
