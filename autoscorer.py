#!/usr/bin/env python3
"""
Three-man league autoscorer CLI

Submits and locks picks, scores weeks and re-runs backfills against a
JSON data directory ({data-dir}/leagues/{league}/{season}.json), using
nflreadpy for schedules, rosters and player stats.

Usage:
    python autoscorer.py submit --league main --member alice --week 3 --qb 00-0033873 --rb 00-0036223 --wr 00-0036900
    python autoscorer.py lock --league main --week 3
    python autoscorer.py freeze --league main --week 3
    python autoscorer.py score --league main --week 3
    python autoscorer.py backfill --league main --week 3 --box-scores corrections/week_3
    python autoscorer.py standings --league main
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from threeman import (
    BackfillCoordinator,
    BoxScoreProvider,
    JsonFileStore,
    KeyedLocks,
    NFLDataFetcher,
    PickKey,
    PickLocker,
    PickValidator,
    Position,
    ProposedPick,
    RejectionReason,
    ThreeManError,
    UsageTracker,
    WeekScorer,
)
from threeman.config import get_current_season, get_league_rules
from threeman.logging_config import get_logger, setup_logging
from threeman.scorer import season_table

logger = get_logger('cli')


def cmd_submit(args, store: JsonFileStore) -> int:
    fetcher = NFLDataFetcher(args.season, args.week)
    validator = PickValidator(
        fetcher.build_schedule_book(), UsageTracker(store), get_league_rules(args.league)
    )

    proposed = (
        [ProposedPick(Position.QB, player_id) for player_id in args.qb]
        + [ProposedPick(Position.RB, player_id) for player_id in args.rb]
        + [ProposedPick(Position.WR, player_id) for player_id in args.wr]
    )
    existing = store.picks_for_member(args.league, args.season, args.week, args.member)
    result = validator.validate(
        proposed, args.league, args.season, args.week, args.member,
        now=datetime.now(timezone.utc), existing=existing,
    )
    if isinstance(result, RejectionReason):
        print(f"Rejected: {result}")
        return 1

    store.replace_member_picks(result.picks)
    print(f"Saved {len(result.picks)} picks for {args.member} in week {args.week}")
    if result.lock_threshold:
        print(f"Picks lock at {result.lock_threshold.isoformat()}")
    return 0


def cmd_lock(args, store: JsonFileStore) -> int:
    fetcher = NFLDataFetcher(args.season, args.week)
    locker = PickLocker(
        store,
        UsageTracker(store),
        fetcher.build_schedule_book(),
        guards=KeyedLocks(),
        rules=get_league_rules(args.league),
    )

    if args.member and args.position:
        key = PickKey(args.league, args.season, args.week, args.member, Position(args.position), args.slot)
        pick = locker.undo_lock(key) if args.undo else locker.admin_lock(key)
        print(f"{key.member} {key.position.value}: {'locked' if pick.locked else 'unlocked'}")
        return 0

    result = locker.lock_due_picks(args.league, args.season, args.week, datetime.now(timezone.utc))
    print(f"Locked {len(result.locked)} picks")
    for warning in result.warnings:
        print(f"  ⚠️  {warning}")
    return 0


def cmd_freeze(args, store: JsonFileStore) -> int:
    if store.is_week_frozen(args.league, args.season, args.week):
        print(f"Week {args.week} of {args.season} is already frozen")
        return 0
    store.freeze_week(args.league, args.season, args.week)
    logger.info(f'Froze {args.league} week {args.week} of {args.season}')
    print(f"🔒 Froze {args.league} week {args.week}; scores and standings will no longer change")
    return 0


def cmd_score(args, store: JsonFileStore) -> int:
    print(f"Scoring {args.league} week {args.week} of {args.season}...")
    scorer = WeekScorer(
        store, NFLDataFetcher(args.season, args.week), rules=get_league_rules(args.league)
    )
    result = scorer.score_week(args.league, args.season, args.week)
    if result.frozen:
        print(f"⚠️  Week {args.week} is frozen; scores below were not saved")

    ranked = sorted(result.scores.values(), key=lambda s: (-s.total_points, s.member))
    for rank, weekly in enumerate(ranked, 1):
        print(f"  {rank}. {weekly.member}: {weekly.total_points} pts")
    return 0


def cmd_backfill(args, store: JsonFileStore) -> int:
    to_week = args.to_week or args.week
    if to_week < args.week:
        print(f"❌ Invalid week range {args.week}-{to_week}")
        return 1

    guards = KeyedLocks()
    failed = False
    for week in range(args.week, to_week + 1):
        fetcher = NFLDataFetcher(args.season, week)
        provider = BoxScoreProvider.from_directory(args.box_scores) if args.box_scores else fetcher
        coordinator = BackfillCoordinator(
            store,
            fetcher.build_schedule_book(),
            provider,
            rules=get_league_rules(args.league),
            guards=guards,
            max_workers=args.workers,
        )
        report = coordinator.run_backfill(args.league, args.season, week)
        print(report.summary())
        for change in report.changes:
            print(f"  {change.member}: {change.old_total} -> {change.new_total} ({change.delta:+})")
        for member, error in report.errors.items():
            print(f"  ❌ {member}: {error}")
        failed = failed or report.status.value == 'failed'
    return 1 if failed else 0


def cmd_standings(args, store: JsonFileStore) -> int:
    table = season_table(store, args.league, args.season)
    if not table:
        print(f"No standings for {args.league} {args.season}")
        return 0

    print("=" * 60)
    print(f"{args.league.upper()} STANDINGS {args.season}")
    print("=" * 60)
    for rank, standing in enumerate(table, 1):
        best = f"week {standing.best_week} ({standing.best_week_points})" if standing.best_week else "-"
        print(
            f"  {rank}. {standing.member}: {standing.season_total_points} pts, "
            f"{standing.weeks_played} weeks, best {best}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Three-man league pick'em autoscorer")
    parser.add_argument(
        "--data-dir", "-d",
        default="data",
        help="Path to data directory",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Only log to the console",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--league", "-l", required=True, help="League id")
    common.add_argument(
        "--season", "-y",
        type=int,
        default=None,
        help="NFL season year (defaults to current_season in league_config.json)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    submit = subparsers.add_parser("submit", parents=[common], help="Validate and save a member's picks")
    submit.add_argument("--week", "-w", type=int, required=True, help="Week number")
    submit.add_argument("--member", "-m", required=True, help="Member id")
    submit.add_argument("--qb", action="append", default=[], help="QB player id (repeat for a double pick)")
    submit.add_argument("--rb", action="append", default=[], help="RB player id (repeat for a double pick)")
    submit.add_argument("--wr", action="append", default=[], help="WR player id (repeat for a double pick)")
    submit.set_defaults(func=cmd_submit)

    lock = subparsers.add_parser("lock", parents=[common], help="Lock picks whose games are about to start")
    lock.add_argument("--week", "-w", type=int, required=True, help="Week number")
    lock.add_argument("--member", "-m", help="Lock a single member's pick (admin)")
    lock.add_argument("--position", "-p", choices=[p.value for p in Position], help="Position of the pick")
    lock.add_argument("--slot", type=int, default=0, help="Slot (1 for the second pick of a double pick)")
    lock.add_argument("--undo", action="store_true", help="Revert the pick to unlocked and drop its usage")
    lock.set_defaults(func=cmd_lock)

    freeze = subparsers.add_parser("freeze", parents=[common], help="Mark a paid-out week so it is never rewritten")
    freeze.add_argument("--week", "-w", type=int, required=True, help="Week number")
    freeze.set_defaults(func=cmd_freeze)

    score = subparsers.add_parser("score", parents=[common], help="Score a week and update standings")
    score.add_argument("--week", "-w", type=int, required=True, help="Week number")
    score.set_defaults(func=cmd_score)

    backfill = subparsers.add_parser("backfill", parents=[common], help="Recompute weeks after stat corrections")
    backfill.add_argument("--week", "-w", type=int, required=True, help="First week to backfill")
    backfill.add_argument("--to-week", type=int, default=None, help="Last week to backfill (inclusive)")
    backfill.add_argument(
        "--box-scores",
        default=None,
        help="Directory of {game_id}.json game summaries to score from instead of nflreadpy",
    )
    backfill.add_argument("--workers", type=int, default=None, help="Member worker threads")
    backfill.set_defaults(func=cmd_backfill)

    standings = subparsers.add_parser("standings", parents=[common], help="Show season standings")
    standings.set_defaults(func=cmd_standings)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=not args.no_log_file,
        run_name=args.command,
    )

    try:
        if args.season is None:
            args.season = get_current_season()
        store = JsonFileStore(Path(args.data_dir))
        return args.func(args, store)
    except ThreeManError as e:
        logger.error(str(e))
        print(f"❌ {e}")
        return 1
    except (FileNotFoundError, ValueError, KeyError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
