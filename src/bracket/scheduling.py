"""
Quiz number assignment.

Linearizes the match graph into a play order: every playable match gets a
quiz number 1..K, no match is numbered before a match it depends on, and
teams get as much rest between appearances as the greedy choice allows.
"""
import logging
import math
from typing import Dict, List, Set

from .advancement import build_match_index
from .models import Match, Round, SLOT_TEAM, WINNERS, LOSERS

logger = logging.getLogger(__name__)

BRACKET_PRIORITY = {WINNERS: 0, LOSERS: 1}
FINALS_PRIORITY = 2
GAP_WEIGHT = 100


def get_dependencies(match: Match, index: Dict[str, Match]) -> Set[str]:
    """
    Non-bye matches that must be played before this one.

    A reference to a bye match is followed through to that match's own
    sources, since the bye itself is never played.
    """
    deps = set()
    stack = [slot for slot in match.slots if slot.is_reference]
    seen = set()
    while stack:
        slot = stack.pop()
        source = index.get(slot.source_match_id)
        if source is None or source.match_id in seen:
            continue
        seen.add(source.match_id)
        if source.is_bye:
            stack.extend(s for s in source.slots if s.is_reference)
        else:
            deps.add(source.match_id)
    return deps


def get_potential_teams(match: Match, index: Dict[str, Match]) -> Set[str]:
    """Every team that could appear in this match, traced through unresolved references."""
    teams = set()
    stack = list(match.slots)
    seen = set()
    while stack:
        slot = stack.pop()
        if slot.kind == SLOT_TEAM and slot.team_name:
            teams.add(slot.team_name)
        elif slot.is_reference and slot.source_match_id not in seen:
            seen.add(slot.source_match_id)
            source = index.get(slot.source_match_id)
            if source is not None:
                stack.extend(source.slots)
    return teams


def assign_quiz_numbers(rounds: List[Round]) -> int:
    """
    Assign quiz numbers to all non-bye matches in play order.

    Greedy: among matches whose dependencies are already numbered, pick the
    one whose teams have waited longest (score = -100 * min gap + bracket
    priority, winners before losers before finals). Bye matches keep quiz
    number 0. Returns the number of matches scheduled.
    """
    index = build_match_index(rounds)
    bracket_of = {}
    for round_ in rounds:
        for match in round_.matches:
            bracket_of[match.match_id] = round_.bracket_type

    to_schedule = []
    for match in index.values():
        match.quiz_number = 0
        if not match.is_bye:
            to_schedule.append(match)

    dependencies = {m.match_id: get_dependencies(m, index) for m in to_schedule}
    potential_teams = {m.match_id: get_potential_teams(m, index) for m in to_schedule}

    scheduled = set()
    last_played = {}
    quiz_number = 1

    def score(match: Match) -> float:
        min_gap = math.inf
        for team in potential_teams[match.match_id]:
            min_gap = min(min_gap, quiz_number - last_played.get(team, 0))
        if min_gap == math.inf:
            min_gap = quiz_number
        priority = BRACKET_PRIORITY.get(bracket_of[match.match_id], FINALS_PRIORITY)
        return -GAP_WEIGHT * min_gap + priority

    while len(scheduled) < len(to_schedule):
        ready = [
            m for m in to_schedule
            if m.match_id not in scheduled and dependencies[m.match_id] <= scheduled
        ]
        if not ready:
            logger.warning("No schedulable match left with %d of %d numbered",
                           len(scheduled), len(to_schedule))
            break

        # min() keeps the earliest match in bracket order on ties
        next_match = min(ready, key=score)
        next_match.quiz_number = quiz_number
        scheduled.add(next_match.match_id)
        for team in potential_teams[next_match.match_id]:
            last_played[team] = quiz_number
        logger.debug("Quiz %d -> %s", quiz_number, next_match.match_id)
        quiz_number += 1

    return len(scheduled)


def get_play_order(rounds: List[Round]) -> List[Match]:
    """Numbered matches sorted by quiz number."""
    numbered = [m for m in build_match_index(rounds).values() if m.quiz_number > 0]
    return sorted(numbered, key=lambda m: m.quiz_number)
