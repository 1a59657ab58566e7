"""Exception hierarchy for commit-ai.

Library code raises these; only the CLI turns them into an exit status.
"""

from typing import List, Optional


class CommitAIError(Exception):
    """Base class for every error the tool reports to the user."""


class ConfigError(CommitAIError):
    """A setting in the environment has an unusable value."""


class ConfigNotFoundError(CommitAIError):
    """No GEMINI_API_KEY or OPENAI_API_KEY was found in any source."""


class EmptyDiffError(CommitAIError):
    """Nothing is staged."""


class GitCommandError(CommitAIError):
    def __init__(self, command: List[str], stderr: str = "", returncode: Optional[int] = None):
        self.command = command
        self.stderr = stderr
        self.returncode = returncode
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"git command '{' '.join(command)}' failed: {detail}")


class ProviderError(CommitAIError):
    """The provider answered with an error, or could not be reached."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        prefix = f"{provider} error"
        if status_code is not None:
            prefix += f" (HTTP {status_code})"
        super().__init__(f"{prefix}: {message}")


class NetworkError(ProviderError):
    pass


class MalformedResponseError(ProviderError):
    """The response body was not a JSON object."""


class ExtractionError(CommitAIError):
    """A successful response carried no usable commit message."""


class UserAbortedError(CommitAIError):
    pass
