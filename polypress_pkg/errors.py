"""
Exception types raised by Polypress.
"""


class PolypressError(Exception):
    """Base class for every error Polypress raises on purpose."""


class ConfigError(PolypressError):
    """Raised when a configuration file cannot be understood."""


class BuildError(PolypressError):
    """
    A fatal build failure.

    The build never tries to recover from these: the run stops and the error
    propagates to the caller with the stage and file that caused it.
    """

    def __init__(self, message, path=None, stage=None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.stage = stage

    def __str__(self):
        parts = []
        if self.stage:
            parts.append(f"[{self.stage}]")
        parts.append(self.message)
        if self.path:
            parts.append(f"({self.path})")
        return ' '.join(parts)
