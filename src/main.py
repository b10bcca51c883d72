# Command line entry point: generate a bracket, simulate it and print the results

import argparse
import logging
import os
import random
import sys
import yaml
from core.bracket import BracketManager, DEFAULT_MAX_PARTICIPANTS, DEFAULT_TOURNAMENT_NAME
from core.elimination import BRACKET_FORMATS, get_round_name
from core.errors import BracketError


def load_settings(file_path):
    if not file_path or not os.path.exists(file_path):
        return {}
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")
    return data


def format_participant(participant):
    if participant is None:
        return "TBD"
    if participant.seed is None:
        return participant.name
    return f"{participant.name} (Seed {participant.seed})"


def print_bracket(bracket):
    rounds = bracket.rounds
    print(f"\n--- {bracket.tournament.name} ---")
    for round_index, round_matches in enumerate(rounds):
        print(f"\n{get_round_name(round_index, len(rounds))}")
        for slot_index, match in enumerate(round_matches):
            if match.is_bye:
                line = f"  {format_participant(match.player1 or match.player2)} - BYE"
            else:
                line = f"  {format_participant(match.player1)} vs {format_participant(match.player2)}"
            if match.winner:
                line += f"  -> {match.winner.name}"
            print(line)

    stats = bracket.stats()
    print(f"\nMatches: {stats['completed']}/{stats['total']} completed ({stats['completion_rate']}%)")
    if bracket.champion:
        print(f"Champion: {format_participant(bracket.champion)}")


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)
    default_settings = os.path.join(base_dir, 'data', 'settings.yaml')

    parser = argparse.ArgumentParser(description='Generate and simulate a single elimination bracket.')
    parser.add_argument('--settings', default=default_settings,
                        help='Settings YAML file (default: data/settings.yaml)')
    parser.add_argument('-n', '--participants', type=int,
                        help='Number of participants (overrides settings)')
    parser.add_argument('--format', choices=BRACKET_FORMATS, dest='bracket_format',
                        help='Seeding format (overrides settings)')
    parser.add_argument('--name', help='Tournament name (overrides settings)')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible simulations')
    parser.add_argument('--no-simulate', action='store_true',
                        help='Only print the generated bracket')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        settings = load_settings(args.settings)
    except (OSError, yaml.YAMLError, ValueError) as e:
        print(f"Could not read settings from {args.settings}: {e}", file=sys.stderr)
        return 1

    try:
        bracket = BracketManager(
            name=args.name or settings.get('tournament_name', DEFAULT_TOURNAMENT_NAME),
            participant_count=(args.participants if args.participants is not None
                               else settings.get('participant_count', 8)),
            bracket_format=args.bracket_format or settings.get('bracket_format', 'standard'),
            strict_participant_counts=settings.get('strict_participant_counts', False),
            max_participants=settings.get('max_participants', DEFAULT_MAX_PARTICIPANTS),
            name_template=settings.get('player_name_template', 'Player {n}'),
            rng=random.Random(args.seed),
        )
    except (BracketError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if not args.no_simulate:
        bracket.simulate()

    print_bracket(bracket)
    return 0


if __name__ == '__main__':
    sys.exit(main())
