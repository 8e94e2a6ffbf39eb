"""Exception types shared across the package."""


class ConfigurationError(ValueError):
    """Invalid configuration value (rotation angle, placement padding, ...)."""


class InputError(Exception):
    """Missing or undecodable input file (image, SVG, YAML)."""


class ReplayCancelled(Exception):
    """Raised by the replay engine when its cancel event is set."""
