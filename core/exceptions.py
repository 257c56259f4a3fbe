"""
Exceptions - Error types raised by ELIZA
========================================

ElizaError
├── ConfigError              bad settings or config file
│   └── RuleSetError         bad rules/reflections/messages script
├── SessionNotFoundError     unknown or evicted chat session
└── SessionTerminatedError   turn sent to an ended conversation

The response engine itself never raises for user input; these errors
come from loading and from the chat service.
"""


class ElizaError(Exception):
    """
    Base class for application errors.

    Attributes:
        message (str): What went wrong
        details (dict): Extra context (file path, offending value, ...)
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} | Details: {self.details}"


class ConfigError(ElizaError):
    """
    Invalid application settings.

    Raised for an unreadable or malformed config.yaml, a bad
    environment override, an out-of-range value, or a request for
    a language that has no script.
    """
    pass


class RuleSetError(ConfigError):
    """
    A script file could not be loaded.

    Raised at load time, before any conversation starts, for:
    - File missing or not valid YAML
    - Rule without decomposition patterns
    - Pattern without reassemblies
    - Invalid regular expression
    - Missing or duplicated fallback rule
    """
    pass


class SessionNotFoundError(ElizaError):
    """
    Raised when a chat session id is unknown or has been evicted.

    Attributes:
        session_id (str): The id that was looked up
    """

    def __init__(self, session_id: str, details: dict = None):
        self.session_id = session_id
        super().__init__(f"Unknown session: {session_id}", details)


class SessionTerminatedError(ElizaError):
    """
    Raised when a turn is sent to a conversation that has ended.

    A conversation ends either through a parity error or because
    the user typed a quit word. It must be reset before it can
    take further turns.

    Attributes:
        session_id (str): The terminated session
        reason (str): 'parity_error' or 'quit'
    """

    def __init__(self, session_id: str, reason: str = "parity_error", details: dict = None):
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Session {session_id} is terminated ({reason})", details)
