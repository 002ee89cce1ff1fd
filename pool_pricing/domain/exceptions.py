from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class ConfigurationError(DomainError):
    """Startup configuration is invalid; the pipeline must not start."""


class NoPriceRouteError(DomainError):
    """No path from the token to any reference asset."""


class ZeroReserveError(DomainError):
    """Pool has one or both reserves at zero."""


class MalformedSnapshotError(DomainError):
    """Computed exchange rates fail the reciprocal sanity check."""


class PoolNotFoundError(DomainError):
    """Requested pool does not exist."""


class TokenNotFoundError(DomainError):
    """Requested token does not exist."""


class InvalidPoolError(DomainError):
    """Pool definition is inconsistent (same token on both sides)."""


class DecimalsMismatchError(DomainError):
    """Token was observed again with different decimals."""


class QueryInputError(DomainError):
    """Invalid parameters for a query."""


class EntityNotFoundError(DomainError):
    """No token or pool with the given id."""
