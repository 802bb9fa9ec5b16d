class FlashTriggerError(Exception):
    """Base class for all Flash Trigger exceptions."""


class ConfigurationError(FlashTriggerError, ValueError):
    """Raised when a trigger is configured with values it can never fire with."""
