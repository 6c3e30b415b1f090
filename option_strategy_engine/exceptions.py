"""Project-wide exception types."""


class OptionEngineError(Exception):
    """Base exception for all engine errors."""


class InvalidInputError(OptionEngineError, ValueError):
    """Raised when a numeric input is non-finite or outside its domain."""


class SchemaError(OptionEngineError):
    """Raised when a leg payload cannot be mapped onto the leg model."""


class ConfigError(OptionEngineError):
    """Raised when configuration is missing or malformed."""


class ConfigValidationError(ConfigError):
    """Raised when validation fails for supplied configuration."""


class ConfigConflictError(ConfigError):
    """Raised when incompatible configuration options are provided."""


class SimulationError(OptionEngineError):
    """Raised when simulated terminal prices are non-positive or non-finite."""
