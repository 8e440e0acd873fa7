"""Exceptions raised while building a site."""


class PageSmithError(Exception):
    """Base exception for all build errors."""

    def __init__(self, message, *args):
        self.message = message
        super().__init__(message, *args)


class PipeError(PageSmithError):
    """Raised when an external program cannot be run or exits unsuccessfully."""

    def __init__(self, message, command, returncode=None):
        self.command = command
        self.returncode = returncode
        super().__init__(message)


class BuildError(PageSmithError):
    """Raised when reading the source tree or writing the output tree fails."""

    def __init__(self, message, path=None):
        self.path = path
        super().__init__(message)


class ConfigurationError(PageSmithError):
    """Raised when a required setting is missing or invalid."""

    pass
