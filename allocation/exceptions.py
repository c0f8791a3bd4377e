"""
Allocation errors.

Every engine failure is local and non-mutating: the transition that raised
never produced a patch, so nothing reaches the store.
"""


class AllocationError(Exception):
    """Base exception for all allocation errors"""
    pass


class ValidationError(AllocationError):
    """Raised when an action is not permitted for the acting team"""
    pass


class PermissionDeniedError(ValidationError):
    """Raised when an actor may not act on a team or perform a privileged action"""
    pass


class ConstraintViolation(AllocationError):
    """Raised when roster capacity would be exceeded or a drop target is missing"""
    pass


class ConcurrencyConflict(AllocationError):
    """Raised when a commit is based on a stale snapshot"""

    def __init__(self, league_id: str, expected_version: int, actual_version: int):
        self.league_id = league_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"League {league_id} changed during the transition "
            f"(expected version {expected_version}, found {actual_version})"
        )


class StructuralError(AllocationError):
    """Raised when league or auction configuration is malformed or missing"""
    pass


class LeagueNotFoundError(AllocationError):
    """Raised when the store has no document for a league id"""
    pass
