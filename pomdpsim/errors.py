"""
Exception types shared across the toolkit.
"""


class ConfigurationError(ValueError):
    """A simulation or batch was described incompletely or inconsistently."""


class DomainError(ValueError):
    """A process or updater was queried outside its declared spaces."""
