"""canonmark.notion -- render Notion pages as canonical Markdown.

This sub-package provides:

* :mod:`.blocks` -- Notion block objects to document tree.
* :mod:`.strategies` -- strategies for the ``notion_*`` node kinds.
* :mod:`.client` -- page fetcher with retries and typed errors.
* :mod:`.retries` -- attempt budget and exponential backoff.
* :mod:`.cache` -- page cache with one in-flight fetch per id.
"""

from __future__ import annotations

from .blocks import BlockConverter, blocks_to_document, plain_text
from .cache import CachingNotionClient
from .client import NotionClient, page_title
from .retries import RetryPolicy
from .strategies import NOTION_STRATEGIES, render_blocks, render_blocks_result

__all__ = [
    "NOTION_STRATEGIES",
    "BlockConverter",
    "CachingNotionClient",
    "NotionClient",
    "RetryPolicy",
    "blocks_to_document",
    "page_title",
    "plain_text",
    "render_blocks",
    "render_blocks_result",
]
