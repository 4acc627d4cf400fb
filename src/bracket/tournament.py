"""
Tournament lifecycle: create a bracket, record results, answer read-only
questions about the current state.

TournamentManager is the only entry point that touches the store; the
module-level helpers work on any Tournament object.
"""
import logging
import random
import secrets
from datetime import datetime
from typing import Dict, List, Optional

from .advancement import (
    build_match_index,
    find_match as _find_match_in_rounds,
    propagate_result,
    resolve_byes_to_fixpoint,
    resolve_team_slot as _resolve_slot_in_rounds,
)
from .double_elimination import generate_double_elimination_rounds
from .elimination import generate_single_elimination_rounds
from .errors import InvalidInput, InvalidResult, NotFound, NotReady
from .models import (
    Match,
    MatchResult,
    MatchSummary,
    Round,
    TeamSlot,
    Tournament,
    DOUBLE_ELIMINATION,
    FINALS,
    SEEDING_METHODS,
    SEEDING_RANDOM,
    SINGLE_ELIMINATION,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    TOURNAMENT_TYPES,
    WINNERS,
)
from .scheduling import assign_quiz_numbers

logger = logging.getLogger(__name__)


def generate_tournament_id() -> str:
    timestamp = datetime.now().strftime('%Y%m%d%H%M%S')
    return f"T-{timestamp}-{secrets.token_hex(3)}"


def build_bracket(tournament_type: str, teams: List[str],
                  question_sets_by_round: Optional[Dict[int, str]] = None) -> List[Round]:
    """Construct the graph, collapse byes, then number the playable matches."""
    if tournament_type == SINGLE_ELIMINATION:
        rounds = generate_single_elimination_rounds(teams, question_sets_by_round)
    elif tournament_type == DOUBLE_ELIMINATION:
        rounds = generate_double_elimination_rounds(teams, question_sets_by_round)
    else:
        raise InvalidInput(f"Unknown tournament type: {tournament_type}")

    resolve_byes_to_fixpoint(rounds)
    assign_quiz_numbers(rounds)
    return rounds


def get_round_names(team_count: int, tournament_type: str) -> List[str]:
    """Round names a bracket of this size will have, in play-section order."""
    if team_count < 2:
        return []
    placeholder_teams = [f"Team {i}" for i in range(1, team_count + 1)]
    return [r.name for r in build_bracket(tournament_type, placeholder_teams)]


def get_round_count(team_count: int, tournament_type: str) -> int:
    return len(get_round_names(team_count, tournament_type))


def find_match(tournament: Tournament, match_id: str) -> Optional[Match]:
    return _find_match_in_rounds(tournament.rounds, match_id)


def resolve_team_slot(slot: TeamSlot, tournament: Tournament) -> Optional[str]:
    return _resolve_slot_in_rounds(slot, tournament.rounds)


def is_tournament_complete(tournament: Tournament) -> bool:
    """True when every non-bye match has a result."""
    return all(match.result is not None
               for match in tournament.iter_matches()
               if not match.is_bye)


def get_playable_matches(tournament: Tournament) -> List[Match]:
    """Matches with both teams determined and no result yet."""
    index = build_match_index(tournament.rounds)
    playable = []
    for match in index.values():
        if match.result is not None or match.is_bye:
            continue
        team1 = _resolve_slot_in_rounds(match.team1, tournament.rounds, index)
        team2 = _resolve_slot_in_rounds(match.team2, tournament.rounds, index)
        if team1 and team2:
            playable.append(match)
    return playable


def get_tournament_winner(tournament: Tournament) -> Optional[str]:
    if tournament.status != STATUS_COMPLETED:
        return None

    finals_rounds = [r for r in tournament.rounds if r.bracket_type == FINALS and r.matches]
    if finals_rounds:
        final_match = finals_rounds[-1].matches[-1]
        return final_match.result.winner_team_name if final_match.result else None

    winners_rounds = [r for r in tournament.rounds if r.bracket_type == WINNERS]
    if winners_rounds:
        last_round = winners_rounds[-1]
        if len(last_round.matches) == 1 and last_round.matches[0].result:
            return last_round.matches[0].result.winner_team_name or None

    return None


def _normalize_question_sets(question_sets_by_round) -> Dict[int, str]:
    """Accept YAML/JSON style string keys as well as ints."""
    if not question_sets_by_round:
        return {}
    normalized = {}
    for key, value in question_sets_by_round.items():
        try:
            normalized[int(key)] = value or ''
        except (TypeError, ValueError):
            raise InvalidInput(f"Round number must be an integer, got {key!r}")
    return normalized


class TournamentManager:
    def __init__(self, store, rng=None):
        self.store = store
        self.rng = rng or random.Random()

    def create_tournament(self, name, tournament_type, team_names, seeding_method='manual',
                          question_sets_by_round=None, dataset_id='') -> Tournament:
        if tournament_type not in TOURNAMENT_TYPES:
            raise InvalidInput(f"Unknown tournament type: {tournament_type}")
        if seeding_method not in SEEDING_METHODS:
            raise InvalidInput(f"Unknown seeding method: {seeding_method}")
        if not team_names or len(team_names) < 2:
            raise InvalidInput("A tournament needs at least 2 teams")

        seeded_teams = list(team_names)
        if seeding_method == SEEDING_RANDOM:
            self.rng.shuffle(seeded_teams)

        rounds = build_bracket(tournament_type, seeded_teams,
                               _normalize_question_sets(question_sets_by_round))
        now = datetime.now().isoformat()
        tournament = Tournament(
            generate_tournament_id(),
            name,
            tournament_type,
            STATUS_IN_PROGRESS,
            seeded_teams,
            dataset_id=dataset_id,
            rounds=rounds,
            created_at=now,
            updated_at=now,
        )

        self.store.add_tournament(tournament)
        logger.info("Created %s tournament %s (%s) with %d teams",
                    tournament_type, tournament.tournament_id, name, len(seeded_teams))
        return tournament

    def get_tournament(self, tournament_id) -> Tournament:
        tournament = self.store.get_tournament(tournament_id)
        if tournament is None:
            raise NotFound("Tournament not found")
        return tournament

    def list_tournaments(self, status=None) -> List[Tournament]:
        return self.store.list_tournaments(status)

    def delete_tournament(self, tournament_id):
        if not self.store.delete_tournament(tournament_id):
            raise NotFound("Tournament not found")
        logger.info("Deleted tournament %s", tournament_id)

    def record_match_result(self, tournament_id, match_id, team1_score, team2_score,
                            played_locally=True) -> Tournament:
        """
        Record a final score and advance both teams.

        All checks run before anything is mutated, so a rejected result
        leaves the stored tournament untouched.
        """
        tournament = self.get_tournament(tournament_id)

        match = find_match(tournament, match_id)
        if match is None:
            raise NotFound("Match not found")
        if match.result is not None:
            raise InvalidResult(f"Match {match_id} already has a result")

        team1_name = resolve_team_slot(match.team1, tournament)
        team2_name = resolve_team_slot(match.team2, tournament)
        if not team1_name or not team2_name or match.is_bye:
            raise NotReady()

        if team1_score == team2_score:
            raise InvalidResult()

        if team1_score > team2_score:
            winner_team_name, loser_team_name = team1_name, team2_name
        else:
            winner_team_name, loser_team_name = team2_name, team1_name

        match.result = MatchResult(
            team1_score,
            team2_score,
            winner_team_name,
            loser_team_name,
            played_locally=played_locally,
            completed_at=datetime.now().isoformat(),
        )

        self.store.save_match_summary(MatchSummary(
            tournament.name, match_id, team1_name, team2_name, team1_score, team2_score,
        ))

        propagate_result(tournament.rounds, match)
        resolve_byes_to_fixpoint(tournament.rounds)

        tournament.status = STATUS_COMPLETED if is_tournament_complete(tournament) else STATUS_IN_PROGRESS
        tournament.updated_at = datetime.now().isoformat()

        self.store.update_tournament(tournament)
        logger.info("Recorded %s in %s: %s beat %s %s-%s", match_id, tournament_id,
                    winner_team_name, loser_team_name, team1_score, team2_score)
        if tournament.status == STATUS_COMPLETED:
            logger.info("Tournament %s completed, winner %s", tournament_id,
                        get_tournament_winner(tournament))
        return tournament

    def repair_tournament(self, tournament_id) -> Tournament:
        """Re-run bye resolution on a stored tournament; save only if it changed."""
        tournament = self.get_tournament(tournament_id)
        if resolve_byes_to_fixpoint(tournament.rounds):
            tournament.status = STATUS_COMPLETED if is_tournament_complete(tournament) else STATUS_IN_PROGRESS
            tournament.updated_at = datetime.now().isoformat()
            self.store.update_tournament(tournament)
            logger.info("Repaired tournament %s", tournament_id)
        return tournament
