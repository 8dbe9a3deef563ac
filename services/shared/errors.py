"""Error types shared across vendor adapters and the API layer."""


class ConfigurationError(ValueError):
    """Raised when a vendor or database credential is missing or invalid.

    Detected before any vendor call is attempted. The API layer renders it
    as HTTP 500 with the message, which always carries a remediation hint.
    """
