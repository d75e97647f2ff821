"""Domain-specific errors for btpresence."""


class BtPresenceError(Exception):
    """Base error for btpresence."""

    exit_code = 1


class ConfigError(BtPresenceError):
    """Raised when the scan configuration cannot be used."""

    exit_code = 2


class ConfigLoadError(ConfigError):
    """Raised when the configuration source is missing, unreadable or unparseable."""


class ConfigValidationError(ConfigError):
    """Raised when a configuration document does not conform to schema."""


class MissingModeError(ConfigError):
    """Raised when the configuration lacks the instant_scan mode flag."""

    exit_code = 3


class AdapterUnavailableError(BtPresenceError):
    """Raised when no Bluetooth adapter can be used for scanning."""

    exit_code = 4


class RadioError(BtPresenceError):
    """Raised on a radio-layer failure for a single device or tick."""


class ReportWriteError(BtPresenceError):
    """Raised when the report document cannot be written."""
