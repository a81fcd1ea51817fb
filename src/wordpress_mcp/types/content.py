"""Content block types used in tool results."""

from typing import Annotated, Literal

from pydantic import Field

from wordpress_mcp.types.base import MCPModel


class TextContent(MCPModel):
    """Text provided to or from an LLM."""

    type: Literal["text"] = "text"
    text: str


class ImageContent(MCPModel):
    """An image provided to or from an LLM."""

    type: Literal["image"] = "image"
    data: str  # base64 encoded
    mime_type: Annotated[str, Field(alias="mimeType")]


ContentBlock = Annotated[TextContent | ImageContent, Field(discriminator="type")]
