from __future__ import annotations
from prompttester.config import settings
from prompttester.core.clients.completion.adapter import extract_text
from prompttester.core.clients.completion.payload import CompletionPayload
from prompttester.domain.exceptions.exceptions import (
    CompletionError,
    ConfigurationError,
    HttpError,
    ResponseError,
)
from typing import TYPE_CHECKING, Any
import logging
import httpx

if TYPE_CHECKING:
    from collections.abc import Sequence
    from prompttester.domain.config.model_config import ModelSelection
    from prompttester.domain.conversation.turn import ConversationTurn

logger = logging.getLogger(__name__)

MISSING_CONFIGURATION = (
    "Missing model configuration. Please set up your model ID and API token."
)


class CompletionClient:
    """
    Sends one chat-completion request and returns the reply text.
    Async by default.

    The model selection is injected at construction. ConfigurationError is raised as-is;
    every other failure is re-raised as CompletionError("API Error: <detail>").
    """

    def __init__(
        self,
        selection: ModelSelection | None,
        endpoint: str = settings.endpoint,
        timeout: float = settings.request_timeout,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.selection: ModelSelection | None = selection
        self.endpoint: str = endpoint
        self.timeout: float = timeout
        self._transport: httpx.AsyncBaseTransport | None = transport

    def require_selection(self) -> ModelSelection:
        if self.selection is None or not self.selection.api_token:
            raise ConfigurationError(MISSING_CONFIGURATION)
        return self.selection

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        history: Sequence[ConversationTurn] = (),
    ) -> str:
        selection = self.require_selection()
        payload = CompletionPayload.build(
            model=selection.model_id,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            history=history,
        )
        try:
            body = await self._post(selection, payload)
            return extract_text(body)
        except ResponseError as e:
            logger.error(f"Completion call failed ({type(e).__name__}): {e}")
            raise CompletionError(f"API Error: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Completion transport failure: {e!r}")
            raise CompletionError(f"API Error: {e}") from e
        except Exception as e:
            # e.g. UnicodeEncodeError for a non-ASCII token header
            logger.error(f"Unexpected completion failure: {e!r}")
            raise CompletionError(f"API Error: {e}") from e

    async def _post(self, selection: ModelSelection, payload: CompletionPayload) -> Any:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {selection.api_token}",
        }
        logger.debug(
            f"POST {self.endpoint} model={payload.model} messages={len(payload.messages)}"
        )
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.post(
                self.endpoint, json=payload.model_dump(mode="json"), headers=headers
            )

        if not response.is_success:
            raise HttpError(self._error_message(response), response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ResponseError(f"API response is not valid JSON: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """
        Server-provided message if present, else "API Error: <status> - <reason>".
        """
        fallback = f"API Error: {response.status_code} - {response.reason_phrase}"
        try:
            error_data = response.json()
        except ValueError:
            return fallback
        logger.error(f"API Error Response: {error_data}")
        if isinstance(error_data, dict):
            message = error_data.get("message")
            if not message and isinstance(error_data.get("error"), dict):
                message = error_data["error"].get("message")
            if message:
                return str(message)
        return fallback
