"""
Questgen CLI - Command-line interface for the engine.

Usage:
    questgen generate <cards.json>     Generate one quest
    questgen step <cards.json>         Run the pipeline one stage at a time
    questgen validate <cards.json>     Run the validator and print a report
"""

import argparse
import json
import sys

from .cards import CardStore, CardStoreError
from .config import EngineConfig, DEFAULT_MAX_REDRAWS
from .engine_core import QuestEngine, PipelineStage, QuestRole, current_tag_list
from .validator import QuestValidator, format_report_as_text


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Questgen - Quest Generation Engine",
        prog="questgen",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate one quest")
    generate_parser.add_argument("cards_file", help="Path to card JSON file")
    generate_parser.add_argument("--verb", help="Use this verb instead of drawing one")
    _add_engine_arguments(generate_parser)
    generate_parser.add_argument("--logs", action="store_true", help="Print the run log")
    generate_parser.add_argument("--json", action="store_true", help="Print the engine state as JSON")

    # Step command
    step_parser = subparsers.add_parser("step", help="Run the pipeline one stage at a time")
    step_parser.add_argument("cards_file", help="Path to card JSON file")
    step_parser.add_argument("--verb", help="Use this verb instead of drawing one")
    _add_engine_arguments(step_parser)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Run the validator")
    validate_parser.add_argument("cards_file", help="Path to card JSON file")
    validate_parser.add_argument("-n", "--iterations", type=int, default=100, help="Quests to generate")
    _add_engine_arguments(validate_parser)
    validate_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    args = parser.parse_args(argv)

    if args.command == "generate":
        cmd_generate(args)
    elif args.command == "step":
        cmd_step(args)
    elif args.command == "validate":
        cmd_validate(args)
    else:
        parser.print_help()
        sys.exit(1)


def _add_engine_arguments(parser):
    parser.add_argument("--seed", help="Seed for a reproducible run")
    parser.add_argument(
        "--max-redraws",
        type=int,
        default=DEFAULT_MAX_REDRAWS,
        help="Rejections before the fallback draw (-1 = draw until match)",
    )
    parser.add_argument("--debug", action="store_true", help="Record verbose run-log entries")


def _load_store(path):
    try:
        store = CardStore.from_file(path)
    except CardStoreError as e:
        print(f"Error: {e}")
        for error in e.errors[3:]:
            print(f"  - {error}")
        sys.exit(1)
    if store.is_empty:
        print(f"Error: No cards found in {path}")
        sys.exit(1)
    return store


def _engine_config(args):
    try:
        return EngineConfig(max_redraws=args.max_redraws, debug_mode=args.debug, seed=args.seed)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


def _find_verb(decks, verb_name):
    if not verb_name:
        return None
    verb = decks.find_card(QuestRole.VERB.value, verb_name)
    if verb is not None:
        return verb
    print(f"Error: Verb not found: {verb_name}")
    sys.exit(1)


def _print_logs(engine):
    for entry in engine.get_logs():
        prefix = {"warning": "WARN ", "error": "ERROR "}.get(entry.level, "")
        print(f"  [{entry.timestamp:3d}] {prefix}{entry.message}")


def _print_quest(engine):
    quest = engine.get_quest()
    for role in QuestRole:
        card = quest.get(role)
        if card is None:
            print(f"{role.label + ':':<10} -")
        else:
            print(f"{role.label + ':':<10} {card.name} [{', '.join(current_tag_list(card))}]")
    stats = engine.stats
    print(
        f"\nDraws: {stats.draw_attempts}  Fallbacks: {stats.fallbacks_triggered}  "
        f"Modify effects: {stats.modify_effects_applied}"
    )


def cmd_generate(args):
    """Generate one quest."""
    store = _load_store(args.cards_file)
    snapshot = store.snapshot()
    engine = QuestEngine(snapshot.decks, config=_engine_config(args))

    quest = engine.generate_quest(_find_verb(snapshot, args.verb))

    if args.json:
        print(json.dumps(engine.state_dict(), indent=2))
    else:
        if args.logs:
            print("Run log:")
            _print_logs(engine)
            print()
        _print_quest(engine)

    if quest is None:
        errors = [e.message for e in engine.get_logs() if e.level == "error"]
        print(f"Error: {errors[-1] if errors else 'Quest generation aborted'}", file=sys.stderr)
        sys.exit(1)


def cmd_step(args):
    """Run each pipeline stage in turn, printing what it drew."""
    store = _load_store(args.cards_file)
    snapshot = store.snapshot()
    engine = QuestEngine(snapshot.decks, config=_engine_config(args))

    stages = [
        PipelineStage.DRAW_VERB,
        PipelineStage.DRAW_TARGET,
        PipelineStage.DRAW_LOCATION,
        PipelineStage.DRAW_TWIST,
        PipelineStage.DRAW_REWARD_AND_FAILURE,
    ]
    for stage in stages:
        seen = len(engine.get_logs())
        if stage == PipelineStage.DRAW_VERB:
            result = engine.step_draw_verb(_find_verb(snapshot, args.verb))
        else:
            result = engine.run_step(stage)

        print(f"--- {stage.value} -> {engine.stage.value}")
        for entry in engine.get_logs()[seen:]:
            print(f"  {entry.message}")

        if result is None:
            print("Error: Quest generation aborted")
            sys.exit(1)

    print()
    _print_quest(engine)


def cmd_validate(args):
    """Run the validator."""
    store = _load_store(args.cards_file)
    if args.iterations < 1:
        print(f"Error: iterations must be >= 1, got {args.iterations}")
        sys.exit(1)

    validator = QuestValidator(store, _engine_config(args))
    report = validator.validate_all(args.iterations)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_report_as_text(report), end="")


if __name__ == "__main__":
    main()
