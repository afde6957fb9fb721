"""Exception hierarchy for faults that should never occur in a wired SDK.

Recoverable outcomes (invalid credentials, empty server responses) are
reported through ``ServiceResult`` instead of raised.
"""


class FaultlineError(Exception):
    """Base error for the faultline SDK."""


class ConfigurationError(FaultlineError):
    """Raised when a required capability is missing from the configuration."""


class MissingErrorParserError(ConfigurationError):
    """Raised when an exception must be parsed but no error parser is set."""
