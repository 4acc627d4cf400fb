"""
Single elimination bracket generation, plus the seeding helpers shared with
double elimination.
"""
import math
from typing import Dict, List, Optional, Tuple

from .advancement import link_advancements
from .models import (
    Match,
    Round,
    TeamSlot,
    FINALS,
    LOSERS,
    WINNERS,
    generate_match_id,
)


def get_round_name(matches_in_round: int, round_number: int, bracket_type: str = WINNERS) -> str:
    """Get the name of a round based on how many matches it holds."""
    if bracket_type == FINALS:
        return "Finals" if round_number == 1 else "Grand Finals"

    prefix = "Losers " if bracket_type == LOSERS else ""
    if matches_in_round == 1:
        return prefix + "Finals"
    elif matches_in_round == 2:
        return prefix + "Semifinals"
    elif matches_in_round == 4:
        return prefix + "Quarterfinals"
    else:
        return prefix + f"Round {round_number}"


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_teams)
    return bracket_size - num_teams


def generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    Winners: 1v4 side, 2v3 side
    Final: 1v2 (if chalk)
    """
    assert bracket_size >= 2 and bracket_size & (bracket_size - 1) == 0, \
        f"bracket size must be a power of two >= 2, got {bracket_size}"

    if bracket_size == 2:
        return [1, 2]

    upper_half = generate_bracket_order(bracket_size // 2)

    # Each position is followed by its mirror seed
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])

    return result


def generate_seed_pairings(bracket_size: int) -> List[Tuple[int, int]]:
    """First round (seed_a, seed_b) pairs in bracket order, e.g. 4 -> [(1, 4), (2, 3)]."""
    order = generate_bracket_order(bracket_size)
    return [(order[i], order[i + 1]) for i in range(0, len(order), 2)]


def _seed_slot(teams: List[str], seed: int) -> TeamSlot:
    if seed <= len(teams):
        return TeamSlot.team(teams[seed - 1])
    return TeamSlot.bye()


def generate_single_elimination_rounds(teams: List[str],
                                       question_sets_by_round: Optional[Dict[int, str]] = None) -> List[Round]:
    """
    Build the round/match graph for a single elimination bracket.

    The first round is laid out over the next power of two in standard seed
    order. Seeds beyond the team count are byes, so the top
    ``bracket_size - n`` seeds sit in bye matches and only the bottom seeds
    play in (seed ``bracket_size - n + 1 + i`` vs seed ``n - i``). Each later
    round pairs consecutive winners of the round before.

    The returned graph is raw: bye matches are unresolved and quiz numbers
    are all 0.
    """
    if question_sets_by_round is None:
        question_sets_by_round = {}

    team_count = len(teams)
    if team_count < 1:
        return []

    bracket_size = max(2, calculate_bracket_size(team_count))
    total_rounds = int(math.log2(bracket_size))
    pairings = generate_seed_pairings(bracket_size)

    rounds = []
    for round_number in range(1, total_rounds + 1):
        matches_in_round = bracket_size // (2 ** round_number)
        round_matches = []

        for position in range(matches_in_round):
            if round_number == 1:
                seed1, seed2 = pairings[position]
                team1 = _seed_slot(teams, seed1)
                team2 = _seed_slot(teams, seed2)
            else:
                prev_matches = rounds[-1].matches
                team1 = TeamSlot.winner_of(prev_matches[position * 2].match_id)
                team2 = TeamSlot.winner_of(prev_matches[position * 2 + 1].match_id)

            round_matches.append(Match(
                generate_match_id(round_number, position, WINNERS),
                position,
                team1,
                team2,
            ))

        rounds.append(Round(
            round_number,
            WINNERS,
            get_round_name(matches_in_round, round_number, WINNERS),
            question_set_id=question_sets_by_round.get(round_number, ''),
            matches=round_matches,
        ))

    link_advancements(rounds)
    return rounds
