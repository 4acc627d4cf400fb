# Command line entry point: build a bracket from a team list and print the play order

import argparse
import logging
import os
import random
import sys

import yaml

from bracket.models import SINGLE_ELIMINATION, SLOT_TEAM, SLOT_WINNER_OF, TOURNAMENT_TYPES
from bracket.scheduling import get_play_order
from bracket.advancement import resolve_team_slot
from bracket.tournament import build_bracket


def load_teams(file_path):
    """Read team names from YAML: either a plain list or {pool: [names]}."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if isinstance(data, dict):
        teams = []
        for team_names in data.values():
            teams.extend(team_names or [])
        return [str(t) for t in teams]
    return [str(t) for t in (data or [])]


def describe_slot(slot):
    if slot.is_bye:
        return 'BYE'
    if slot.kind == SLOT_TEAM:
        return slot.team_name
    prefix = 'Winner' if slot.kind == SLOT_WINNER_OF else 'Loser'
    return f'{prefix} of {slot.source_match_id}'


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Generate an elimination bracket and quiz order.')
    parser.add_argument('teams_file', nargs='?', default=os.path.join(base_dir, 'data', 'teams.yaml'),
                        help='YAML list of team names in seed order')
    parser.add_argument('--type', choices=TOURNAMENT_TYPES, default=SINGLE_ELIMINATION)
    parser.add_argument('--random', action='store_true', help='shuffle teams before seeding')
    parser.add_argument('--seed', type=int, help='random seed for --random')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    teams = load_teams(args.teams_file)
    if len(teams) < 2:
        print(f"Need at least 2 teams. Check {args.teams_file}")
        return 1

    if args.random:
        random.Random(args.seed).shuffle(teams)

    rounds = build_bracket(args.type, teams)

    print(f"\n--- {args.type} bracket, {len(teams)} teams ---")
    for round_ in rounds:
        print(f"\n{round_.name} ({round_.bracket_type} round {round_.round_number})")
        for match in round_.matches:
            if match.result is not None and match.is_bye:
                winner = match.result.winner_team_name or '-'
                print(f"  {match.match_id}: bye, {winner} advances")
            else:
                print(f"  {match.match_id}: {describe_slot(match.team1)} vs {describe_slot(match.team2)}")

    print("\n--- Quiz Order ---")
    for match in get_play_order(rounds):
        team1 = resolve_team_slot(match.team1, rounds) or describe_slot(match.team1)
        team2 = resolve_team_slot(match.team2, rounds) or describe_slot(match.team2)
        print(f"  Quiz {match.quiz_number}: {match.match_id}  {team1} vs {team2}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
