"""Exception hierarchy for the three-man league core.

Pick rejections are not exceptions; see ``validators.RejectionReason``.
"""


class ThreeManError(Exception):
    """Base class for all library errors."""


class StatsProviderError(ThreeManError):
    """The statistics provider could not be reached or returned garbage."""


class SystemicBackfillFailure(ThreeManError):
    """The week's game data cannot be located; the whole backfill run aborts."""


class PerMemberBackfillError(ThreeManError):
    """Scoring a single member failed during backfill."""

    def __init__(self, member: str, message: str):
        super().__init__(f'{member}: {message}')
        self.member = member
        self.message = message


class LockConflictError(ThreeManError):
    """A pick write lost a compare-and-swap or tried to alter a locked pick."""


class BackfillInProgressError(ThreeManError):
    """A backfill for the same league and week is already running."""
