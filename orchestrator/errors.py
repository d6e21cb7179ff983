from __future__ import annotations

# Error tag returned (never raised) when a second mint is attempted in one Run.
MINTING_ALREADY_COMPLETED = "MINTING_ALREADY_COMPLETED"


class OrchestrationError(Exception):
    pass


class TransportError(OrchestrationError):
    """Conversational backend or other infrastructure is unavailable."""


class BackendError(TransportError):
    pass


class SessionCreationError(TransportError):
    pass


class RunCreationError(TransportError):
    pass


class InvalidSessionError(OrchestrationError):
    pass


class ToolHandlerError(Exception):
    """
    Domain failure inside a tool handler.

    The dispatcher converts it (like any handler exception) into an
    "Error: ..." tool output; it never aborts a batch.
    """
