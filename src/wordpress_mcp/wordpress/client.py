"""Asynchronous client for the WordPress REST API (``wp-json/wp/v2``)."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import httpx

from wordpress_mcp.exceptions import BackendError
from wordpress_mcp.utilities.httpx_utils import HttpClientFactory, create_http_client

logger = logging.getLogger(__name__)

API_PREFIX = "wp-json/wp/v2/"


class PostStatus(str, Enum):
    """Post status values understood by the REST API."""

    DRAFT = "draft"
    PUBLISH = "publish"
    PRIVATE = "private"
    FUTURE = "future"  # scheduled


class WordPressClient:
    """Stateless wrapper around the REST endpoints the tools need.

    Each call opens its own HTTP client, authenticates with HTTP basic auth
    (an application password) and raises BackendError on a non-2xx answer.
    Nothing is retried here.
    """

    def __init__(
        self,
        site_url: str,
        username: str,
        password: str,
        *,
        http_client_factory: HttpClientFactory = create_http_client,
    ) -> None:
        self.site_url = site_url if site_url.endswith("/") else f"{site_url}/"
        self._auth = httpx.BasicAuth(username, password)
        self._http_client_factory = http_client_factory

    @property
    def api_url(self) -> str:
        return f"{self.site_url}{API_PREFIX}"

    async def create_post(
        self,
        title: str,
        content: str,
        status: PostStatus | str = PostStatus.DRAFT,
        taxonomies: dict[str, list[int]] | None = None,
        date: str | None = None,
    ) -> dict[str, Any]:
        """Create a post. ``status`` is sent as given; scheduling is the caller's decision."""
        post_data: dict[str, Any] = {
            "title": title,
            "content": content,
            "status": PostStatus(status).value,
        }
        if taxonomies:
            post_data.update(taxonomies)
        if date:
            post_data["date"] = date

        return await self._request("POST", "posts", action="create WordPress post", json=post_data)

    async def get_posts(self, per_page: int = 10, page: int = 1) -> list[dict[str, Any]]:
        return await self._request(
            "GET",
            "posts",
            action="get WordPress posts",
            params={"per_page": per_page, "page": page},
        )

    async def update_post(
        self,
        post_id: int,
        title: str | None = None,
        content: str | None = None,
        status: PostStatus | str | None = None,
        taxonomies: dict[str, list[int]] | None = None,
        date: str | None = None,
    ) -> dict[str, Any]:
        """Update a post, sending only the fields that were supplied."""
        data: dict[str, Any] = {}
        if title is not None:
            data["title"] = title
        if content is not None:
            data["content"] = content
        if status is not None:
            data["status"] = PostStatus(status).value
        if taxonomies:
            data.update(taxonomies)
        if date:
            data["date"] = date

        return await self._request("POST", f"posts/{post_id}", action="update WordPress post", json=data)

    async def get_taxonomies(self) -> list[dict[str, Any]]:
        # The endpoint answers with an object keyed by taxonomy slug.
        taxonomies = await self._request("GET", "taxonomies", action="get WordPress taxonomies")
        return list(taxonomies.values())

    async def get_taxonomy_terms(self, taxonomy: str, per_page: int = 100, page: int = 1) -> list[dict[str, Any]]:
        return await self._request(
            "GET",
            taxonomy,
            action=f"get terms for taxonomy {taxonomy}",
            params={"per_page": per_page, "page": page},
        )

    async def _request(self, method: str, path: str, *, action: str, **kwargs: Any) -> Any:
        url = f"{self.api_url}{path}"
        logger.debug("%s %s", method, url)
        async with self._http_client_factory(auth=self._auth) as client:
            response = await client.request(method, url, **kwargs)

        if not response.is_success:
            raise BackendError(
                f"Failed to {action}: {response.status_code} {response.reason_phrase} - {response.text}",
                status_code=response.status_code,
            )
        return response.json()
