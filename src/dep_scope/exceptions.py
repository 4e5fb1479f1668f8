"""Custom exceptions for dep-scope."""


class DepScopeError(Exception):
    """Base exception for dep-scope."""


class PomNotFoundError(DepScopeError):
    """Raised when a pom.xml file cannot be found."""


class PomParseError(DepScopeError):
    """Raised when a pom.xml file cannot be parsed."""


class PomModelError(DepScopeError):
    """Raised when required Maven model fields are missing or invalid."""


class ContractViolationError(DepScopeError, ValueError):
    """Raised when a caller hands the traversal context malformed input."""


class GraphError(DepScopeError):
    """Raised when a dependency graph cannot be turned into a tree."""
