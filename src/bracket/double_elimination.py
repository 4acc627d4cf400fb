"""
Double elimination bracket generation.

In double elimination:
- Teams must lose twice to be eliminated
- Winners Bracket: Teams that haven't lost yet
- Losers Bracket: Teams that have lost once
- Championship: Winners bracket champion vs Losers bracket champion

No bracket reset match is generated; the Championship winner is the
tournament champion.
"""
import logging
import math
from typing import Dict, List, Optional

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

logger = logging.getLogger(__name__)


def get_winners_round_name(matches_in_round: int, round_number: int, has_bye: bool = False) -> str:
    """Get the name for a winners bracket round."""
    if round_number == 1:
        # Named from the real matches only; a bye match keeps it out of "Final"
        if matches_in_round == 1 and not has_bye:
            return "Winners Final"
        elif matches_in_round <= 2:
            return "Winners Semifinals"
        elif matches_in_round <= 4:
            return "Winners Quarterfinals"
        return "Winners Round 1"

    if matches_in_round == 1:
        return "Winners Final"
    elif matches_in_round == 2:
        return "Winners Semifinals"
    elif matches_in_round == 4:
        return "Winners Quarterfinals"
    return f"Winners Round {round_number}"


def get_losers_round_name(round_number: int, is_last: bool = False) -> str:
    """Get the name for a losers bracket round."""
    if is_last:
        return "L Final"
    return f"L Round {round_number}"


def calculate_winners_rounds(team_count: int) -> int:
    if team_count < 2:
        return 0
    return math.ceil(math.log2(team_count))


def _generate_winners_bracket(teams: List[str]) -> List[Round]:
    """
    Winners bracket rounds with question sets not yet assigned.

    Round 1 pairs seed i with seed n+1-i. With an odd team count seed 1 sits
    in an explicit bye match. Later rounds pair consecutive winners; an
    unpaired tail slot is a bye.
    """
    team_count = len(teams)
    round1_match_count = team_count // 2
    has_odd_teams = team_count % 2 == 1
    total_rounds = calculate_winners_rounds(team_count)

    round1_matches = []
    if has_odd_teams:
        round1_matches.append(Match(
            generate_match_id(1, 0, WINNERS), 0,
            TeamSlot.team(teams[0]), TeamSlot.bye(),
        ))
        first_seed = 2
    else:
        first_seed = 1

    for i in range(round1_match_count):
        seed1 = first_seed + i
        seed2 = team_count - i
        position = len(round1_matches)
        round1_matches.append(Match(
            generate_match_id(1, position, WINNERS), position,
            TeamSlot.team(teams[seed1 - 1]), TeamSlot.team(teams[seed2 - 1]),
        ))

    winners_rounds = [Round(
        1, WINNERS,
        get_winners_round_name(round1_match_count, 1, has_bye=has_odd_teams),
        matches=round1_matches,
    )]

    for round_number in range(2, total_rounds + 1):
        prev_matches = winners_rounds[-1].matches
        if len(prev_matches) <= 1:
            break
        matches_in_round = math.ceil(len(prev_matches) / 2)
        round_matches = []

        for i in range(matches_in_round):
            sources = prev_matches[i * 2:i * 2 + 2]
            team1 = TeamSlot.winner_of(sources[0].match_id)
            team2 = TeamSlot.winner_of(sources[1].match_id) if len(sources) > 1 else TeamSlot.bye()
            round_matches.append(Match(generate_match_id(round_number, i, WINNERS), i, team1, team2))

        winners_rounds.append(Round(
            round_number, WINNERS,
            get_winners_round_name(matches_in_round, round_number),
            matches=round_matches,
        ))

    return winners_rounds


def _loser_sources(winners_round: Round) -> List[TeamSlot]:
    """Losers a winners round sends down; a match with a bye slot has no real loser."""
    return [
        TeamSlot.loser_of(m.match_id)
        for m in winners_round.matches
        if not m.is_bye
    ]


def _generate_losers_bracket(winners_rounds: List[Round]):
    """
    Build the losers bracket from the winners bracket's losers.

    Returns (losers_rounds, survivor) where survivor is the slot that will
    hold the losers bracket champion.

    Structure pattern:
    - L Round 1: W1 losers face each other
    - L Round 2: L1 winners face W2 losers (drop-in)
    - L Round 3: L2 winners face each other
    - L Round 4: L3 winners face W3 losers (drop-in)
    - etc.

    An elimination round with an odd field carries the extra team forward
    without a match. A round with no matches gets no Round object, so round
    numbers can have gaps.
    """
    winners_round_count = len(winners_rounds)
    losers_by_winners_round = {r.round_number: _loser_sources(r) for r in winners_rounds}

    survivors = list(losers_by_winners_round.get(1, []))
    losers_rounds = []
    losers_round_number = 1
    last_fed_winners_round = 1
    max_round_number = 4 * winners_round_count + 4

    while len(survivors) > 1 or last_fed_winners_round < winners_round_count:
        if losers_round_number > max_round_number:
            logger.warning("Losers bracket generation exceeded %d rounds", max_round_number)
            break

        is_drop_in_round = losers_round_number % 2 == 0
        new_losers = []
        if is_drop_in_round:
            feeding_winners_round = losers_round_number // 2 + 1
            if feeding_winners_round <= winners_round_count:
                new_losers = list(losers_by_winners_round.get(feeding_winners_round, []))
                last_fed_winners_round = max(last_fed_winners_round, feeding_winners_round)

        round_matches = []
        if not new_losers:
            # Elimination round: survivors face each other
            if len(survivors) < 2:
                # Waiting for the next drop-in
                losers_round_number += 1
                continue

            match_count = len(survivors) // 2
            for i in range(match_count):
                round_matches.append(Match(
                    generate_match_id(losers_round_number, i, LOSERS), i,
                    survivors[i * 2], survivors[i * 2 + 1],
                ))
            carried = survivors[match_count * 2:]
            survivors = [TeamSlot.winner_of(m.match_id) for m in round_matches] + carried
        else:
            # Drop-in round: survivors face the new losers, padded with byes
            match_count = max(len(survivors), len(new_losers))
            for i in range(match_count):
                team1 = survivors[i] if i < len(survivors) else TeamSlot.bye()
                team2 = new_losers[i] if i < len(new_losers) else TeamSlot.bye()
                round_matches.append(Match(
                    generate_match_id(losers_round_number, i, LOSERS), i, team1, team2,
                ))
            survivors = [TeamSlot.winner_of(m.match_id) for m in round_matches]

        losers_rounds.append(Round(
            losers_round_number, LOSERS,
            get_losers_round_name(losers_round_number),
            matches=round_matches,
        ))
        losers_round_number += 1

    if losers_rounds:
        losers_rounds[-1].name = get_losers_round_name(losers_rounds[-1].round_number, is_last=True)

    survivor = survivors[0] if survivors else TeamSlot.bye()
    return losers_rounds, survivor


def generate_double_elimination_rounds(teams: List[str],
                                       question_sets_by_round: Optional[Dict[int, str]] = None) -> List[Round]:
    """
    Build the full round/match graph for a double elimination bracket.

    Rounds come back in order: winners rounds, losers rounds, Championship.
    Question sets are keyed by a running round counter across all three
    sections in that order. The graph is raw: bye matches are unresolved and
    quiz numbers are all 0.
    """
    if question_sets_by_round is None:
        question_sets_by_round = {}

    if len(teams) < 2:
        return []

    winners_rounds = _generate_winners_bracket(teams)
    losers_rounds, losers_champion = _generate_losers_bracket(winners_rounds)

    championship = Match(
        generate_match_id(1, 0, FINALS), 0,
        TeamSlot.winner_of(winners_rounds[-1].matches[0].match_id),
        losers_champion,
    )
    finals_round = Round(1, FINALS, "Championship", matches=[championship])

    rounds = winners_rounds + losers_rounds + [finals_round]
    for counter, round_ in enumerate(rounds, start=1):
        round_.question_set_id = question_sets_by_round.get(counter, '')

    # Advancement records are derived from the references actually placed,
    # so they never point at a skipped losers round number.
    link_advancements(rounds)
    return rounds
