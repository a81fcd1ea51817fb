"""WordPress backend: REST client and the tools built on it."""

from .client import PostStatus, WordPressClient
from .tools import WordPressTools, register_wordpress_tools, resolve_status

__all__ = ["PostStatus", "WordPressClient", "WordPressTools", "register_wordpress_tools", "resolve_status"]
