"""Error codes and exceptions for qai.

Every failure surfaced to the user derives from QaiError, so the CLI can
report it as a single "Error: ..." line and exit 1:
- configuration loading (ConfigError)
- learning store I/O (HistoryError)
- prompt templates (PromptError)
- model API calls and key validation (ApiError, ApiValidationError)
- shell integration (UnsupportedShellError, InvalidKeyNameError)
"""


class ErrorCode:
    """Standard error codes attached to every QaiError."""

    # Local errors
    CONFIG_ERROR = "CONFIG_ERROR"            # Config file unreadable or invalid
    HISTORY_ERROR = "HISTORY_ERROR"          # History directory/file not writable
    PROMPT_ERROR = "PROMPT_ERROR"            # Prompt template invalid
    UNSUPPORTED_SHELL = "UNSUPPORTED_SHELL"  # shell-init for unknown shell
    INVALID_KEY_NAME = "INVALID_KEY_NAME"    # Unknown key binding name

    # Remote errors
    API_ERROR = "API_ERROR"                  # Chat completion request failed
    NOT_CONFIGURED = "NOT_CONFIGURED"        # No API key available
    INVALID_API_KEY = "INVALID_API_KEY"      # 401 from /models
    ACCESS_DENIED = "ACCESS_DENIED"          # 403 from /models
    NETWORK_ERROR = "NETWORK_ERROR"          # Transport failure
    UNEXPECTED = "UNEXPECTED"                # Any other response


class QaiError(Exception):
    """Base exception for all qai errors."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class ConfigError(QaiError):
    """Raised when a configuration file cannot be loaded."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.CONFIG_ERROR, message)


class HistoryError(QaiError):
    """Raised when the history directory or its files cannot be written."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.HISTORY_ERROR, message)


class PromptError(QaiError):
    """Raised when a system prompt cannot be read or rendered."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.PROMPT_ERROR, message)


class UnsupportedShellError(QaiError):
    """Raised when shell-init is asked for a shell without a template."""

    def __init__(self, shell: str, supported):
        self.shell = shell
        super().__init__(
            ErrorCode.UNSUPPORTED_SHELL,
            f"Unsupported shell: '{shell}'. Supported shells: {', '.join(supported)}",
        )


class InvalidKeyNameError(QaiError):
    """Raised when a key binding name has no known escape sequence."""

    def __init__(self, name: str, valid_names):
        self.name = name
        super().__init__(
            ErrorCode.INVALID_KEY_NAME,
            f"Unknown key '{name}'. Valid keys: {', '.join(valid_names)}",
        )


class ApiError(QaiError):
    """Raised when a chat completion request fails."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.API_ERROR, message)


class ApiValidationError(QaiError):
    """Base class for API key validation failures."""


class ApiKeyNotConfigured(ApiValidationError):
    """Raised when no API key is available."""

    def __init__(self, message: str = (
        "API key not configured. Set QAI_API_KEY environment variable or add api_key to config."
    )):
        super().__init__(ErrorCode.NOT_CONFIGURED, message)


class InvalidApiKey(ApiValidationError):
    """Raised when the API rejects the key (401)."""

    def __init__(self, message: str = "API key is invalid or revoked"):
        super().__init__(ErrorCode.INVALID_API_KEY, f"Invalid API key: {message}")


class AccessDenied(ApiValidationError):
    """Raised when the key lacks permissions (403)."""

    def __init__(self, message: str = "API key lacks required permissions"):
        super().__init__(ErrorCode.ACCESS_DENIED, f"Access denied: {message}")


class NetworkError(ApiValidationError):
    """Raised when the API endpoint cannot be reached."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.NETWORK_ERROR, f"Network error: {message}")


class UnexpectedResponse(ApiValidationError):
    """Raised for any other validation response."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.UNEXPECTED, f"Unexpected error: {message}")
