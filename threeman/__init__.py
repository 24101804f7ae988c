from .constants import PICK_POSITIONS, Position
from .models import (
    Game,
    Pick,
    PickKey,
    PlayerGameStatistics,
    PlayerInfo,
    SeasonStanding,
    WeeklyScore,
)
from .exceptions import (
    BackfillInProgressError,
    LockConflictError,
    PerMemberBackfillError,
    StatsProviderError,
    SystemicBackfillFailure,
    ThreeManError,
)
from .normalizer import normalize_box_score, normalize_stats
from .scoring import score, score_breakdown
from .schedule import ScheduleBook
from .store import JsonFileStore, LeagueStore, MemoryStore
from .usage import UsageTracker
from .validators import (
    PickValidator,
    ProposedPick,
    RejectionCode,
    RejectionReason,
    ValidatedPicks,
)
from .weekly import compute_weekly_score
from .standings import fold, rank_standings, recompute
from .locks import KeyedLocks
from .locking import PickLocker
from .backfill import BackfillCoordinator, BackfillReport, BackfillState
from .scorer import WeekScorer
from .data_fetcher import BoxScoreProvider, NFLDataFetcher

__all__ = [
    # Models
    'Position',
    'PICK_POSITIONS',
    'Game',
    'Pick',
    'PickKey',
    'PlayerGameStatistics',
    'PlayerInfo',
    'SeasonStanding',
    'WeeklyScore',
    # Errors
    'ThreeManError',
    'StatsProviderError',
    'SystemicBackfillFailure',
    'PerMemberBackfillError',
    'LockConflictError',
    'BackfillInProgressError',
    # Normalizing and scoring
    'normalize_stats',
    'normalize_box_score',
    'score',
    'score_breakdown',
    'compute_weekly_score',
    'fold',
    'recompute',
    'rank_standings',
    # Picks
    'ScheduleBook',
    'UsageTracker',
    'PickValidator',
    'ProposedPick',
    'RejectionCode',
    'RejectionReason',
    'ValidatedPicks',
    'KeyedLocks',
    'PickLocker',
    # Persistence
    'LeagueStore',
    'MemoryStore',
    'JsonFileStore',
    # Pipelines
    'WeekScorer',
    'BackfillCoordinator',
    'BackfillReport',
    'BackfillState',
    # Data fetching
    'NFLDataFetcher',
    'BoxScoreProvider',
]
