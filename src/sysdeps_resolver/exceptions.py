"""Custom exceptions for the sysdeps resolver."""


class ResolverError(Exception):
    """Base exception for the sysdeps resolver."""


class PomNotFoundError(ResolverError):
    """Raised when a POM file cannot be found."""


class PomParseError(ResolverError):
    """Raised when a POM file cannot be parsed."""


class PomModelError(ResolverError):
    """Raised when required Maven model fields are missing or invalid."""
