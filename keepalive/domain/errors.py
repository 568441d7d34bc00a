"""
Domain error taxonomy.

Use cases raise these; the API layer maps them to HTTP statuses in one place
(see keepalive.api.errors). Messages are user-facing.
"""


class KeepAliveError(Exception):
    """Base class for all engine errors"""


class ValidationError(KeepAliveError, ValueError):
    """Bad strategy ranges, missing required field, bad query parameters"""


class InsufficientAccountsError(KeepAliveError):
    """Fewer than two active accounts are eligible for generation"""


class CapacityExhaustedError(KeepAliveError):
    """No day with spare daily capacity was found within the search horizon"""


class NotFoundError(KeepAliveError):
    pass


class IllegalTransitionError(KeepAliveError):
    """Lifecycle operation attempted on a terminal task"""


class ImmutablePolicyError(KeepAliveError):
    """Mutation or deletion of a system strategy"""
