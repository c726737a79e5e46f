class SmartAssignError(Exception):
    """Base class for every error raised by the assignment engine."""


class EmptyInputError(SmartAssignError, ValueError):
    """
    Raised when an optimization run has no tasks, or no candidates left
    after the run's constraints are applied. No partial result is produced.
    """


class StoreNotConfiguredError(SmartAssignError):
    """Supabase credentials are missing from the environment."""


class StoreError(SmartAssignError):
    """A call to the assignment store failed."""
