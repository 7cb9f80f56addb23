class PromptTesterError(Exception):
    """Base class for all prompttester-related exceptions."""

    pass


class ConfigurationError(PromptTesterError):
    """No model selected, no access token, or unreadable settings. Surfaced verbatim."""

    pass


class CompletionError(PromptTesterError):
    """
    The single outward-facing error of the completion client.
    Message is always "API Error: <detail>"; the internal cause is chained.
    """

    pass


class ResponseError(PromptTesterError):
    """Base class for protocol/format failures talking to the completion endpoint."""

    pass


class HttpError(ResponseError):
    """Non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyResponseError(ResponseError):
    pass


class MissingChoicesError(ResponseError):
    pass


class MissingMessageError(ResponseError):
    pass


class InvalidContentFormatError(ResponseError):
    pass


class MissingTextError(ResponseError):
    pass


class SessionError(PromptTesterError):
    """Exception raised for errors related to session operations."""

    pass


class MinimumSessionError(SessionError):
    """Refused: the last remaining session cannot be removed."""

    pass


class SessionNotFoundError(SessionError):
    pass


class SubmissionInProgressError(PromptTesterError):
    """A submit is already in flight for this session."""

    pass


class ConversationError(PromptTesterError, ValueError):
    """A conversation log mutation would break its shape."""

    pass
