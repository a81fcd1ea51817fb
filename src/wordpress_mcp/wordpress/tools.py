"""WordPress tools: argument models, handlers and registration.

Every handler turns its own failures (missing credentials, backend errors)
into an error envelope, so callers always get content back.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, PositiveInt, SecretStr, field_validator

from wordpress_mcp.exceptions import ConfigurationError
from wordpress_mcp.settings import WordPressSettings
from wordpress_mcp.tools import ToolRegistry
from wordpress_mcp.types import CallToolResult
from wordpress_mcp.wordpress.client import PostStatus, WordPressClient

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = (
    "WordPress credentials not provided. Please provide siteUrl, username, and password parameters "
    "or set WORDPRESS_SITE_URL, WORDPRESS_USERNAME, and WORDPRESS_PASSWORD environment variables."
)
SCHEDULED_NOTE = " (Post will be scheduled)"

StatusValue = Literal["draft", "publish", "private", "future"]
TermIds = list[int]

_STATUS_DESCRIPTION = (
    "Note: If a future date is provided with 'publish' status, it will automatically be scheduled "
    "(API status: 'future')."
)
_DATE_DESCRIPTION = (
    "Specific date for the post in ISO 8601 format (e.g., '2023-12-31T23:59:59'). "
    "If date is in the future and status is 'publish', post will be scheduled."
)

ClientFactory = Callable[[str, str, str], WordPressClient]


def parse_date(value: str) -> datetime:
    """Parse an ISO 8601 date as accepted by the REST API."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def is_future(value: str) -> bool:
    """Naive dates are site-local and compared with local time; aware ones with UTC."""
    moment = parse_date(value)
    if moment.tzinfo is None:
        return moment > datetime.now()
    return moment > datetime.now(timezone.utc)


def resolve_status(status: str | None, date: str | None) -> str | None:
    """Status to send to the backend: 'publish' with a future date becomes 'future'."""
    if status == PostStatus.PUBLISH.value and date and is_future(date):
        return PostStatus.FUTURE.value
    return status


def display_status(status: str) -> str:
    return "Scheduled" if status == PostStatus.FUTURE.value else status


class CredentialArguments(BaseModel):
    """Connection arguments shared by every tool; each falls back to the environment."""

    model_config = ConfigDict(populate_by_name=True)

    site_url: Annotated[
        HttpUrl | None, Field(alias="siteUrl", description="WordPress site URL (optional if set in env)")
    ] = None
    username: Annotated[str | None, Field(description="WordPress username (optional if set in env)")] = None
    password: Annotated[
        SecretStr | None, Field(description="WordPress application password (optional if set in env)")
    ] = None


class PostFieldsMixin(BaseModel):
    categories: Annotated[
        TermIds | None, Field(description="Array of category IDs to assign to the post")
    ] = None
    tags: Annotated[TermIds | None, Field(description="Array of tag IDs to assign to the post")] = None
    taxonomies: Annotated[
        dict[str, TermIds] | None,
        Field(description="Custom taxonomies to assign (format: {taxonomy_name: [term_ids]})"),
    ] = None
    date: Annotated[str | None, Field(description=_DATE_DESCRIPTION)] = None

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                parse_date(value)
            except ValueError as e:
                raise ValueError(f"date must be an ISO 8601 date, got {value!r}") from e
        return value

    def collect_taxonomies(self) -> dict[str, TermIds]:
        """Merge categories, tags and custom taxonomies into one field map."""
        taxonomies: dict[str, TermIds] = {}
        if self.categories:
            taxonomies["categories"] = self.categories
        if self.tags:
            taxonomies["tags"] = self.tags
        if self.taxonomies:
            taxonomies.update(self.taxonomies)
        return taxonomies


class CreatePostArguments(PostFieldsMixin, CredentialArguments):
    title: Annotated[str, Field(description="Post title")]
    content: Annotated[str, Field(description="Post content")]
    status: Annotated[
        StatusValue, Field(description=f"Post status (optional, default: 'draft'). {_STATUS_DESCRIPTION}")
    ] = "draft"


class UpdatePostArguments(PostFieldsMixin, CredentialArguments):
    post_id: Annotated[int, Field(alias="postId", description="Post ID to update")]
    title: Annotated[str | None, Field(description="New post title (optional)")] = None
    content: Annotated[str | None, Field(description="New post content (optional)")] = None
    status: Annotated[
        StatusValue | None, Field(description=f"New post status (optional). {_STATUS_DESCRIPTION}")
    ] = None


class GetPostsArguments(CredentialArguments):
    per_page: Annotated[
        PositiveInt, Field(alias="perPage", description="Number of posts per page (optional, default: 10)")
    ] = 10
    page: Annotated[PositiveInt, Field(description="Page number (optional, default: 1)")] = 1


class GetTaxonomiesArguments(CredentialArguments):
    pass


class GetTaxonomyTermsArguments(CredentialArguments):
    taxonomy: Annotated[str, Field(description="Taxonomy slug (e.g., 'categories', 'tags')")]
    per_page: Annotated[
        PositiveInt, Field(alias="perPage", description="Number of terms per page (optional, default: 100)")
    ] = 100
    page: Annotated[PositiveInt, Field(description="Page number (optional, default: 1)")] = 1


def _date_message(date: str | None, scheduled: bool) -> str:
    if not date:
        return ""
    return f"\nDate: {date}{SCHEDULED_NOTE if scheduled else ''}"


def _taxonomy_message(heading: str, taxonomies: dict[str, TermIds]) -> str:
    if not taxonomies:
        return ""
    lines = [f"\n{heading}:"]
    for taxonomy, term_ids in taxonomies.items():
        lines.append(f"\n- {taxonomy}: {', '.join(str(term) for term in term_ids)}")
    return "".join(lines)


class WordPressTools:
    """The five WordPress tools bound to a client factory and default settings."""

    def __init__(
        self,
        client_factory: ClientFactory = WordPressClient,
        settings_factory: Callable[[], WordPressSettings] = WordPressSettings,
    ) -> None:
        self._client_factory = client_factory
        self._settings_factory = settings_factory

    def register(self, registry: ToolRegistry) -> None:
        registry.register("create_post", "Creates a new WordPress post", CreatePostArguments, self.create_post)
        registry.register("get_posts", "Retrieves WordPress posts", GetPostsArguments, self.get_posts)
        registry.register("update_post", "Updates an existing WordPress post", UpdatePostArguments, self.update_post)
        registry.register(
            "get_taxonomies", "Gets all taxonomies from a WordPress site", GetTaxonomiesArguments, self.get_taxonomies
        )
        registry.register(
            "get_taxonomy_terms",
            "Gets terms for a specific taxonomy from a WordPress site",
            GetTaxonomyTermsArguments,
            self.get_taxonomy_terms,
        )

    def client_for(self, args: CredentialArguments) -> WordPressClient:
        """Build a client from per-call arguments, falling back to the environment.

        Raises:
            ConfigurationError: site URL, username or password is still missing
        """
        settings = self._settings_factory()
        site_url = str(args.site_url) if args.site_url else settings.site_url
        username = args.username or settings.username
        password = args.password or settings.password
        if not site_url or not username or not password:
            raise ConfigurationError(MISSING_CREDENTIALS_MESSAGE)
        return self._client_factory(site_url, username, password.get_secret_value())

    async def create_post(self, args: CreatePostArguments) -> CallToolResult:
        try:
            client = self.client_for(args)
            taxonomies = args.collect_taxonomies()
            status = resolve_status(args.status, args.date)
            post = await client.create_post(args.title, args.content, status, taxonomies or None, args.date)
            scheduled = status == PostStatus.FUTURE.value and args.status == PostStatus.PUBLISH.value
            return CallToolResult.text(
                f"Successfully created WordPress post with ID: {post['id']}\n"
                f"Title: {post['title']['rendered']}\n"
                f"Status: {display_status(post['status'])}"
                f"{_date_message(args.date, scheduled)}"
                f"{_taxonomy_message('Assigned taxonomies', taxonomies)}"
            )
        except Exception as e:
            logger.warning("create_post failed: %s", e)
            return CallToolResult.error(f"Error creating WordPress post: {e}")

    async def get_posts(self, args: GetPostsArguments) -> CallToolResult:
        try:
            client = self.client_for(args)
            posts = await client.get_posts(args.per_page, args.page)
            lines = "\n".join(
                f"ID: {post['id']}, Title: {post['title']['rendered']}, Status: {post['status']}" for post in posts
            )
            return CallToolResult.text(f"Retrieved {len(posts)} WordPress posts:\n{lines}")
        except Exception as e:
            logger.warning("get_posts failed: %s", e)
            return CallToolResult.error(str(e))

    async def update_post(self, args: UpdatePostArguments) -> CallToolResult:
        try:
            client = self.client_for(args)
            taxonomies = args.collect_taxonomies()
            status = resolve_status(args.status, args.date)
            post = await client.update_post(
                args.post_id, args.title, args.content, status, taxonomies or None, args.date
            )
            scheduled = status == PostStatus.FUTURE.value and args.status == PostStatus.PUBLISH.value
            return CallToolResult.text(
                f"WordPress post updated successfully. Post ID: {post['id']}\n"
                f"Status: {display_status(post['status'])}"
                f"{_date_message(args.date, scheduled)}"
                f"{_taxonomy_message('Updated taxonomies', taxonomies)}"
            )
        except Exception as e:
            logger.warning("update_post failed: %s", e)
            return CallToolResult.error(f"Error updating WordPress post: {e}")

    async def get_taxonomies(self, args: GetTaxonomiesArguments) -> CallToolResult:
        try:
            client = self.client_for(args)
            taxonomies = await client.get_taxonomies()
            return CallToolResult.text(
                f"WordPress taxonomies retrieved successfully. Found {len(taxonomies)} taxonomies.",
                _pretty(taxonomies),
            )
        except Exception as e:
            logger.warning("get_taxonomies failed: %s", e)
            return CallToolResult.error(f"Error getting WordPress taxonomies: {e}")

    async def get_taxonomy_terms(self, args: GetTaxonomyTermsArguments) -> CallToolResult:
        try:
            client = self.client_for(args)
            terms = await client.get_taxonomy_terms(args.taxonomy, args.per_page, args.page)
            return CallToolResult.text(
                f"WordPress terms for taxonomy '{args.taxonomy}' retrieved successfully. Found {len(terms)} terms.",
                _pretty(terms),
            )
        except Exception as e:
            logger.warning("get_taxonomy_terms failed: %s", e)
            return CallToolResult.error(f"Error getting WordPress taxonomy terms: {e}")


def _pretty(data: Any) -> str:
    return json.dumps(data, indent=2)


def register_wordpress_tools(
    registry: ToolRegistry,
    *,
    client_factory: ClientFactory = WordPressClient,
    settings_factory: Callable[[], WordPressSettings] = WordPressSettings,
) -> WordPressTools:
    """Register the WordPress tools on a registry."""
    tools = WordPressTools(client_factory=client_factory, settings_factory=settings_factory)
    tools.register(registry)
    return tools
