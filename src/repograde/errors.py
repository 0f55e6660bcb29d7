"""Exception taxonomy shared by providers, adapters and the orchestrator.

Adapters and the dynamic orchestrator catch these at their top level and turn
them into structured failure results; they never reach the caller raw.
"""


class RepogradeError(Exception):
    """Base class for all repograde errors."""


class NotApplicableError(RepogradeError):
    """Raised when a tool has nothing to analyze in a repository.

    This is a normal outcome (e.g. no CSS files for the style linter) and is
    reported as ``success=False`` with a message, not logged as a failure.
    """


class UpstreamUnavailableError(RepogradeError):
    """Raised when a remote collaborator (GitHub, LLM) cannot be reached."""


class MalformedProviderOutputError(RepogradeError):
    """Raised when generated text fails its minimal structural check."""


class ToolNotAvailableError(RepogradeError):
    """Raised when a required tool is not installed or accessible."""

    def __init__(self, tool_name: str, message: str | None = None) -> None:
        self.tool_name = tool_name
        self.message = message or f"Tool not available: {tool_name}"
        super().__init__(self.message)


class ToolExecutionError(RepogradeError):
    """Raised when a tool execution fails."""

    def __init__(
        self,
        tool_name: str,
        message: str,
        exit_code: int | None = None,
        stderr: str | None = None,
    ) -> None:
        self.tool_name = tool_name
        self.exit_code = exit_code
        self.stderr = stderr
        full_message = f"Tool execution failed: {tool_name} - {message}"
        if exit_code is not None:
            full_message += f" (exit code: {exit_code})"
        super().__init__(full_message)
