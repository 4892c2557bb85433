"""
Main Entry Point for the resource tracker
Replays a JSONL log of classified events and prints the resulting beliefs
"""

__version__ = "1.0.0"

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from config import ConfigError, config
from core import GameSession
from services.logger import PerformanceLogger, cleanup_logging, log_performance, setup_logging

logger = logging.getLogger(__name__)

PARTICIPANT_FIELDS = ("player", "player_a", "playerA", "player_b", "playerB", "thief", "victim")


def load_events(path: str | Path) -> list[dict[str, Any]]:
    """
    Read a JSONL event log

    Each line is either {"seq": n, "event": "<type>", "data": {...}} or a
    bare event dict carrying "type". Blank lines are skipped.

    Raises:
        ValueError: On a line that is not a JSON object
    """
    events = []
    with open(path) as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_number}: invalid JSON ({e})")
            if not isinstance(record, dict):
                raise ValueError(f"{path}:{line_number}: expected a JSON object")
            if "event" in record and "data" in record:
                record = {**record["data"], "type": record["event"]}
            events.append(record)
    return events


def participants(events: list[dict[str, Any]]) -> list[str]:
    """Player names in order of first appearance"""
    names: list[str] = []
    for event in events:
        for key in PARTICIPANT_FIELDS:
            name = event.get(key)
            if name and name not in names:
                names.append(name)
    return names


def replay(events: list[dict[str, Any]], local_player: str | None = None) -> GameSession:
    """Feed events through a fresh session; rejected events are logged and skipped"""
    session = GameSession(players=participants(events))
    if local_player:
        session.set_local_player(local_player)

    skipped = 0
    with PerformanceLogger(logger, f"replay of {len(events)} event(s)") as timer:
        for event in events:
            result = session.process(event)
            if not result["success"]:
                skipped += 1
                logger.warning(f"Skipped event {event.get('type')}: {result['reason']}")
    log_performance("replay", timer.duration, {"events": len(events), "skipped": skipped})
    return session


def render_summary(session: GameSession) -> list[str]:
    """Human-readable report of the session's current beliefs"""
    tracker = session.tracker
    if tracker is None:
        return ["No resource events processed"]

    lines = [
        f"Variants: {tracker.get_variant_count()} (leaves: {tracker.get_leaf_count()})",
        f"Uncertainty: {tracker.get_uncertainty_score():.3f}",
    ]

    open_transactions = tracker.get_unknown_transactions()
    lines.append(f"Open transactions: {len(open_transactions)}")
    for transaction in open_transactions:
        odds = tracker.get_transaction_resource_probabilities(transaction.id)
        spread = ", ".join(f"{r.value} {p:.0%}" for r, p in odds.items() if p > 0)
        lines.append(f"  {transaction.id}: {transaction.thief} stole from {transaction.victim} ({spread})")

    for name in session.players:
        probabilities = tracker.get_player_resource_probabilities(name)
        parts = []
        for resource, floor in probabilities["minimum_resources"].items():
            extra = probabilities["additional_resource_probabilities"][resource]
            if floor or extra:
                parts.append(f"{resource.value} >={floor}" + (f" (+1 at {extra:.0%})" if extra else ""))
        lines.append(f"{name}: {', '.join(parts) if parts else 'no cards'}")
    return lines


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point

    Returns:
        Process exit code
    """
    parser = argparse.ArgumentParser(
        description="Replay a classified event log through the resource tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s events.jsonl
  %(prog)s events.jsonl --local-player Alice --config tracker.json
        """,
    )
    parser.add_argument("events", help="JSONL file of classified events")
    parser.add_argument("--local-player", help="Name of the observing player")
    parser.add_argument("--config", help="JSON file with configuration overrides")
    parser.add_argument("--debug", action="store_true", help="Dump every variant and the event history")
    args = parser.parse_args(argv)

    setup_logging()
    config.set_logger(logger)

    try:
        return _run(args)
    finally:
        cleanup_logging()


def _run(args: argparse.Namespace) -> int:
    try:
        if args.config:
            config.load_from_file(args.config)
        config.validate()
    except ConfigError as e:
        logger.critical(f"Configuration validation failed: {e}")
        return 2

    try:
        events = load_events(args.events)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read event log: {e}")
        return 1

    session = replay(events, local_player=args.local_player)
    for line in render_summary(session):
        print(line)

    if args.debug and session.tracker is not None:
        session.tracker.debug_variants()
        session.tracker.debug_transaction_history()
    return 0


if __name__ == "__main__":
    sys.exit(main())
