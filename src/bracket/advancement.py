"""
Advancement and bye resolution.

Turns recorded results into direct team references in the matches that
depend on them, and auto-resolves matches where one side is a bye. All
lookups go through match ids; nothing holds a reference to another match
object.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from .models import (
    Match,
    MatchAdvancement,
    MatchResult,
    Round,
    TeamSlot,
    SLOT_LOSER_OF,
    SLOT_TEAM,
    SLOT_WINNER_OF,
)

logger = logging.getLogger(__name__)


def build_match_index(rounds: List[Round]) -> Dict[str, Match]:
    """Map match id -> match, in bracket order."""
    index = {}
    for round_ in rounds:
        for match in round_.matches:
            index[match.match_id] = match
    return index


def find_match(rounds: List[Round], match_id: str) -> Optional[Match]:
    for round_ in rounds:
        for match in round_.matches:
            if match.match_id == match_id:
                return match
    return None


def find_round_for_match(rounds: List[Round], match_id: str) -> Optional[Round]:
    for round_ in rounds:
        if any(m.match_id == match_id for m in round_.matches):
            return round_
    return None


def find_round(rounds: List[Round], bracket_type: str, round_number: int) -> Optional[Round]:
    for round_ in rounds:
        if round_.bracket_type == bracket_type and round_.round_number == round_number:
            return round_
    return None


def link_advancements(rounds: List[Round]) -> None:
    """
    Point every source match at the slot that references it.

    Walks all forward references (winner-of / loser-of) in the graph and
    writes the matching winner_advances_to / loser_advances_to record on the
    source match, so advancement records always agree with the slots that
    were actually placed.
    """
    index = build_match_index(rounds)
    for round_ in rounds:
        for match in round_.matches:
            for slot_name in ('team1', 'team2'):
                slot = match.slot(slot_name)
                if not slot.is_reference:
                    continue
                source = index.get(slot.source_match_id)
                if source is None:
                    continue
                advancement = MatchAdvancement(round_.bracket_type, round_.round_number,
                                               match.position, slot_name)
                if slot.kind == SLOT_WINNER_OF:
                    source.winner_advances_to = advancement
                else:
                    source.loser_advances_to = advancement


def _resolve_slot(slot: TeamSlot, index: Dict[str, Match], visited: Set[str]) -> Optional[str]:
    if slot.kind == SLOT_TEAM:
        return slot.team_name or None
    if not slot.is_reference or not slot.source_match_id:
        return None

    # Cycle guard
    if slot.source_match_id in visited:
        return None
    visited.add(slot.source_match_id)

    source = index.get(slot.source_match_id)
    if source is None:
        return None

    if source.result:
        if slot.kind == SLOT_WINNER_OF:
            return source.result.winner_team_name or None
        return source.result.loser_team_name or None

    # Unplayed source with a bye on one side: its winner is already known.
    if slot.kind == SLOT_WINNER_OF:
        if source.team1.is_bye and not source.team2.is_bye:
            return _resolve_slot(source.team2, index, visited)
        if source.team2.is_bye and not source.team1.is_bye:
            return _resolve_slot(source.team1, index, visited)

    return None


def resolve_team_slot(slot: TeamSlot, rounds: List[Round], index: Optional[Dict[str, Match]] = None) -> Optional[str]:
    """
    Resolve a slot to a team name, or None if it is a bye or still undetermined.

    winner-of / loser-of references follow their source match's result; an
    unplayed source with a bye on one side resolves to its other slot.
    """
    if index is None:
        index = build_match_index(rounds)
    return _resolve_slot(slot, index, set())


def _now() -> str:
    return datetime.now().isoformat()


def _bye_result(winner_team_name: str) -> MatchResult:
    return MatchResult(0, 0, winner_team_name, '', played_locally=False, completed_at=_now())


def propagate_result(rounds: List[Round], match: Match, round_lookup: Optional[Dict] = None) -> bool:
    """
    Copy a resolved match's winner and loser into the slots they advance to.

    Only slots that are still forward references are rewritten; a slot that
    already holds a team or a bye is left alone. Empty names (the loser of a
    bye, the winner of a double bye) are never written. Returns True if any
    slot changed.
    """
    if match.result is None:
        return False
    if round_lookup is None:
        round_lookup = {(r.bracket_type, r.round_number): r for r in rounds}

    changed = False
    for advancement, team_name in ((match.winner_advances_to, match.result.winner_team_name),
                                   (match.loser_advances_to, match.result.loser_team_name)):
        if advancement is None or not team_name:
            continue
        target_round = round_lookup.get((advancement.bracket_type, advancement.round_number))
        if target_round is None or advancement.match_position >= len(target_round.matches):
            logger.warning("Advancement target %s of %s does not exist", advancement, match.match_id)
            continue
        target = target_round.matches[advancement.match_position]
        if target.result is not None:
            continue
        slot = target.slot(advancement.slot)
        if slot.is_reference and slot.source_match_id == match.match_id:
            slot.set_team(team_name)
            changed = True
    return changed


def _is_vacated(slot: TeamSlot, index: Dict[str, Match]) -> bool:
    """A reference whose source finished without producing a team for it."""
    if not slot.is_reference:
        return False
    source = index.get(slot.source_match_id)
    if source is None or source.result is None:
        return False
    if slot.kind == SLOT_LOSER_OF:
        return source.result.loser_team_name == ''
    return source.result.winner_team_name == ''


def resolve_byes_to_fixpoint(rounds: List[Round]) -> bool:
    """
    Auto-resolve bye matches until nothing changes.

    Each pass:
    1. pushes existing results into the slots that reference them,
    2. turns references to a source that produced no team into byes,
    3. gives a zero-score result to a match with exactly one bye whose other
       side resolves, and an empty result to a match with two byes.

    Every step is monotonic, so the loop terminates; it is capped anyway.
    Returns True if anything changed.
    """
    index = build_match_index(rounds)
    round_lookup = {(r.bracket_type, r.round_number): r for r in rounds}
    max_passes = 3 * len(index) + 1
    changed_any = False

    for pass_number in range(1, max_passes + 1):
        changed = False
        for match in index.values():
            if match.result is not None:
                if propagate_result(rounds, match, round_lookup):
                    changed = True
                continue

            for slot in match.slots:
                if _is_vacated(slot, index):
                    slot.set_bye()
                    changed = True

            if match.team1.is_bye and match.team2.is_bye:
                match.result = MatchResult(0, 0, '', '', played_locally=False, completed_at=_now())
                changed = True
            elif match.team1.is_bye or match.team2.is_bye:
                other = match.team2 if match.team1.is_bye else match.team1
                team_name = _resolve_slot(other, index, set())
                if team_name:
                    match.result = _bye_result(team_name)
                    propagate_result(rounds, match, round_lookup)
                    changed = True

        if not changed:
            logger.debug("Bye resolution settled after %d pass(es)", pass_number)
            break
        changed_any = True
    else:
        logger.warning("Bye resolution did not settle after %d passes", max_passes)

    return changed_any
