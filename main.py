# main.py

import argparse
import logging
import sys
from typing import Dict, List, Optional

from ladder.baseline import BaselineStrategy
from ladder.client import LadderClient, SubmitOutcome
from ladder.config import LadderConfig
from ladder.errors import LadderError
from ladder.models import SCORE_OPTIONS, Player, build_candidate


def _safe_print(message: str) -> None:
    """Print with Unicode fallback for restricted terminal encodings."""
    try:
        print(message)
    except UnicodeEncodeError:
        fallback = (
            message.replace("▲", "^")
            .replace("▼", "v")
            .replace("—", "-")
            .replace("•", "|")
        )
        print(fallback)


def _movement_label(delta: int) -> str:
    if delta > 0:
        return f"▲{delta}"
    if delta < 0:
        return f"▼{abs(delta)}"
    return "—"


def _streak_label(streak: int) -> str:
    return f"+{streak}" if streak > 0 else str(streak)


def _show_leaderboard(players: List[Player], movement: Dict[str, int]) -> None:
    if not players:
        _safe_print("No players found. Check the Ladder sheet.")
        return
    _safe_print("=" * 50)
    for p in players:
        _safe_print(
            f"#{p.rank:<3} {_movement_label(movement.get(p.name, 0)):<4} {p.name:<20} "
            f"{p.wins}W • {p.losses}L  streak {_streak_label(p.streak)}"
        )
    _safe_print("=" * 50)


def _show_outcome(outcome: SubmitOutcome) -> None:
    _safe_print(f"[{outcome.status.upper()}] {outcome.message} ({outcome.pending} pending)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Challenge ladder client", prog="main.py")
    parser.add_argument("--api-url", help="Ladder web app URL (default: $LADDER_API_URL)")
    parser.add_argument("--db", help="Path to the local store (default: $LADDER_DB_PATH or data/ladder.db)")
    parser.add_argument(
        "--baseline-strategy",
        choices=[s.value for s in BaselineStrategy],
        help="Reference point for rank movement",
    )
    parser.add_argument(
        "--no-queue-rejected",
        action="store_true",
        help="Report rejected submissions instead of queuing them for retry",
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("refresh", help="Fetch the ladder and show the leaderboard")

    submit = sub.add_parser("submit", help="Submit a match result")
    submit.add_argument("--challenger", required=True)
    submit.add_argument("--defender", required=True)
    submit.add_argument("--winner", required=True)
    submit.add_argument("--score", required=True, help=f"e.g. {', '.join(SCORE_OPTIONS)}")

    sync = sub.add_parser("sync", help="Retry queued submissions in order")
    sync.add_argument("--max-attempts", type=int, default=None)

    eligible = sub.add_parser("eligible", help="List who a player may challenge")
    eligible.add_argument("name")

    sub.add_parser("movement", help="Show rank movement against the baseline")
    sub.add_parser("pending", help="List queued submissions")
    sub.add_parser("awards", help="Show ladder awards")
    sub.add_parser("matches", help="Show recent matches")

    pin = sub.add_parser("pin", help="Show or set the league PIN")
    pin.add_argument("value", nargs="?")
    return parser


def build_config(args: argparse.Namespace) -> LadderConfig:
    config = LadderConfig.from_env()
    if args.api_url:
        config.api_url = args.api_url
    if args.db:
        config.db_path = args.db
    if args.baseline_strategy:
        config.baseline_strategy = BaselineStrategy.parse(args.baseline_strategy)
    if args.no_queue_rejected:
        config.queue_rejected = False
    return config


def run(args: argparse.Namespace, client: LadderClient) -> int:
    command = args.command

    if command == "pin":
        if args.value is None:
            _safe_print(client.load_pin() or "(no PIN saved)")
        else:
            client.save_pin(args.value)
            _safe_print("PIN saved.")
        return 0

    if command == "pending":
        items = client.pending()
        if not items:
            _safe_print("No pending submissions.")
        for item in items:
            _safe_print(f"{item.date}  {item.challenger} vs {item.defender}  winner {item.winner}  {item.score}")
        return 0

    if command == "sync":
        result = client.sync_pending(args.max_attempts)
        _safe_print(f"Synced {result.synced}, {result.remaining} remaining.")
        if result.error:
            _safe_print(f"[WARN] {result.error}")
            return 1
        return 0

    if command == "submit":
        candidate = build_candidate(args.challenger, args.defender, args.winner, args.score)
        _show_outcome(client.submit(candidate))
        return 0

    started = client.start()
    if started.source == "cache":
        _safe_print(f"[WARN] Offline mode (showing last saved data). ({started.error})")
    elif started.source == "none":
        _safe_print(f"[ERROR] Failed to load: {started.error}")
        return 1

    if command == "refresh":
        _show_leaderboard(list(client.snapshot.players), client.movement_for())
    elif command == "movement":
        for name, delta in client.movement_for().items():
            _safe_print(f"{name:<20} {_movement_label(delta)}")
    elif command == "eligible":
        names = client.allowed_defenders(args.name)
        _safe_print(", ".join(names) if names else f"{args.name} has no eligible opponents right now.")
    elif command == "awards":
        for award in client.awards():
            _safe_print(f"{award.title:<28} {award.value or '—'}  {award.detail}")
    elif command == "matches":
        for m in client.recent_matches():
            loser = m.defender if m.winner == m.challenger else m.challenger
            _safe_print(f"{m.date}  {m.winner} beat {loser}  {m.score}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    client = LadderClient.from_config(config)
    try:
        return run(args, client)
    except (LadderError, ValueError) as e:
        _safe_print(f"[ERROR] {e}")
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
