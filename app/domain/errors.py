# app/domain/errors.py


class CardStudioError(Exception):
    """Base class for every error raised by the card studio core."""


class NotFound(CardStudioError):
    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier


class InvalidField(CardStudioError):
    """A field reference could not be parsed. Callers degrade it to empty output."""

    def __init__(self, field: str, reason: str = "malformed field reference"):
        super().__init__(f"{reason}: {field!r}")
        self.field = field


class ExportFailed(CardStudioError):
    retryable = True

    def __init__(self, message: str, template_id: str = None):
        super().__init__(message)
        self.template_id = template_id


class ExportSuperseded(CardStudioError):
    """The export was replaced by a newer request for the same template."""

    def __init__(self, key: str):
        super().__init__(f"export '{key}' superseded by a newer request")
        self.key = key
