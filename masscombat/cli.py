"""
Mass Combat CLI - Command-line interface for the engine.

Usage:
    masscombat cards [--culture NAME]             List card definitions
    masscombat simulate [--difficulty D] [--seed N] [--rounds N]
                                                  Run a bot-vs-bot battle
    masscombat serve [--host H] [--port P]        Run the HTTP API

Add --verbose before the command for debug logging.
"""

import argparse
import os
import sys

from loguru import logger


def configure_logging(verbose: bool = False) -> None:
    """Route loguru to stderr at the configured level."""
    level = "DEBUG" if verbose else os.getenv("MASSCOMBAT_LOG_LEVEL", "WARNING")
    logger.remove()
    logger.add(sys.stderr, level=level)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Mass Combat - Tactical card-combat engine",
        prog="masscombat",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Cards command
    cards_parser = subparsers.add_parser("cards", help="List card definitions")
    cards_parser.add_argument("--culture", help="Culture (plus neutral cards)")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Run a bot-vs-bot battle")
    simulate_parser.add_argument(
        "--difficulty", choices=["easy", "medium", "hard"], default="medium",
        help="Bot difficulty for both sides",
    )
    simulate_parser.add_argument("--seed", type=int, default=None, help="Battle seed")
    simulate_parser.add_argument("--rounds", type=int, default=20, help="Round limit")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "cards":
        return cmd_cards(args)
    elif args.command == "simulate":
        return cmd_simulate(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 1


def cmd_cards(args):
    """List card definitions."""
    from .catalog import load_default_catalog
    from .engine_core.effect_resolver import describe_effect

    catalog = load_default_catalog()
    cards = catalog.for_culture(args.culture) if args.culture else catalog.all()
    for card in cards:
        unit = card.unit_type.value if card.unit_type else "-"
        effect = describe_effect(card.effect_type) or "-"
        culture = card.culture or "neutral"
        print(
            f"{card.card_id:<22} {card.name:<28} {unit:<11} "
            f"ATK {card.attack_bonus:+d} DEF {card.defense_bonus:+d} "
            f"CMD {card.command_required}  VET {card.vet_cost:<3} {culture:<8} {effect}"
        )
    print(f"\n{len(cards)} cards")
    return 0


def cmd_simulate(args):
    """Run a bot-vs-bot battle and print its log."""
    from .session import GameLoop, LoopState, SessionManager

    if args.rounds < 1:
        print("Error: --rounds must be at least 1")
        return 1

    manager = SessionManager()
    session = manager.create_session(
        player_name="Bot A",
        difficulty=args.difficulty,
        seed=args.seed,
        vs_bot=False,
        max_rounds=args.rounds,
    )
    result = GameLoop(session).run_to_completion()
    if not result.success:
        print(f"Error: {'; '.join(result.errors)}")
        return 1

    battle = session.battle
    env = battle.environment
    print(f"Battle {battle.battle_id} (seed {session.metadata['seed']})")
    print(f"Terrain: {env.terrain}  Climate: {env.climate}  Season: {env.season}")
    print()
    for entry in battle.log:
        print(entry)
    print()

    for side in battle.sides:
        print(f"{side.name} ({side.culture}): {side.hp} hp")
    if result.loop_state == LoopState.GAME_OVER:
        winner = battle.get_side(battle.winner) if battle.winner else None
        print(f"Winner: {winner.name if winner else 'none'} after {battle.round_number} rounds")
    else:
        print(f"No winner after {args.rounds} rounds")

    manager.end_session(session.session_id)
    return 0


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from .api import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
