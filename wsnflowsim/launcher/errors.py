"""Exceptions shared by the launcher modules."""


class ConfigurationError(ValueError):
    """Invalid topology, traffic or radio parameters.

    Raised before any event is scheduled so that a bad run aborts early.
    """


__all__ = ["ConfigurationError"]
