"""
Best-effort, one-shot description of what changed between two prompt versions.
Descriptions are cosmetic: every failure is logged and turned into None.
"""

from __future__ import annotations
from prompttester.core.clients.completion.client import CompletionClient
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from collections.abc import Callable
    from prompttester.domain.config.model_config import ModelSelection

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that describes differences between two versions "
    "of text in a concise way, using less than 20 words."
)

USER_PROMPT = """
Describe the difference between these two versions:

OLD VERSION:
{old}

NEW VERSION:
{new}
""".strip()


class DiffSummarizer:
    def __init__(
        self,
        client_factory: Callable[[ModelSelection | None], CompletionClient] = CompletionClient,
    ):
        self.client_factory = client_factory

    async def summarize(
        self,
        selection: ModelSelection | None,
        old_content: str | None,
        new_content: str,
    ) -> str | None:
        """
        Never raises. None when there is nothing to compare against or the call fails.
        """
        if old_content is None:
            return None
        try:
            client = self.client_factory(selection)
            description = await client.complete(
                SYSTEM_PROMPT,
                USER_PROMPT.format(old=old_content, new=new_content),
            )
        except Exception as e:
            logger.warning(f"Failed to generate version description: {e}")
            return None
        description = description.strip()
        return description or None
