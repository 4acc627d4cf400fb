"""
Tests for double elimination bracket functionality.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.advancement import build_match_index
from bracket.double_elimination import (
    get_losers_round_name,
    get_winners_round_name,
    calculate_winners_rounds,
    generate_double_elimination_rounds,
)
from bracket.models import FINALS, LOSERS, WINNERS
from bracket.tournament import build_bracket, get_round_names


def team_names(count):
    return [f"Team {i}" for i in range(1, count + 1)]


def rounds_of(rounds, bracket_type):
    return [r for r in rounds if r.bracket_type == bracket_type]


class TestRoundNames:
    """Tests for winners and losers round names."""

    def test_losers_round_names(self):
        """Losers rounds are numbered; the last is the L Final."""
        assert get_losers_round_name(1) == "L Round 1"
        assert get_losers_round_name(3) == "L Round 3"
        assert get_losers_round_name(4, is_last=True) == "L Final"

    def test_winners_round_names(self):
        """Winners rounds are named by match count."""
        assert get_winners_round_name(1, 2) == "Winners Final"
        assert get_winners_round_name(2, 2) == "Winners Semifinals"
        assert get_winners_round_name(4, 2) == "Winners Quarterfinals"
        assert get_winners_round_name(3, 2) == "Winners Round 2"

    def test_first_round_with_bye_is_not_final(self):
        """A single real match next to a bye is not the Winners Final."""
        assert get_winners_round_name(1, 1) == "Winners Final"
        assert get_winners_round_name(1, 1, has_bye=True) == "Winners Semifinals"

    def test_calculate_winners_rounds(self):
        """ceil(log2(n)) winners rounds."""
        assert calculate_winners_rounds(2) == 1
        assert calculate_winners_rounds(5) == 3
        assert calculate_winners_rounds(8) == 3
        assert calculate_winners_rounds(1) == 0


class TestFiveTeamBracket:
    """Structure of the five team bracket."""

    @pytest.fixture
    def rounds(self):
        return generate_double_elimination_rounds(["A", "B", "C", "D", "E"])

    def test_winners_round_1(self, rounds):
        """Seed 1 sits in a bye match; 2v5 and 3v4 play."""
        wr1 = rounds_of(rounds, WINNERS)[0].matches
        assert [m.match_id for m in wr1] == ["WR1M1", "WR1M2", "WR1M3"]
        assert wr1[0].team1.team_name == "A" and wr1[0].team2.is_bye
        assert (wr1[1].team1.team_name, wr1[1].team2.team_name) == ("B", "E")
        assert (wr1[2].team1.team_name, wr1[2].team2.team_name) == ("C", "D")

    def test_winners_round_2_has_bye_tail(self, rounds):
        """Three round 1 winners leave the last round 2 slot as a bye."""
        wr2 = rounds_of(rounds, WINNERS)[1].matches
        assert wr2[0].team1.source_match_id == "WR1M1"
        assert wr2[0].team2.source_match_id == "WR1M2"
        assert wr2[1].team1.source_match_id == "WR1M3"
        assert wr2[1].team2.is_bye

    def test_losers_bracket_skips_empty_round(self, rounds):
        """L Round 3 has no matches and is not generated."""
        losers = rounds_of(rounds, LOSERS)
        assert [r.round_number for r in losers] == [1, 2, 4]
        assert [r.name for r in losers] == ["L Round 1", "L Round 2", "L Final"]

    def test_losers_sources(self, rounds):
        """Losers rounds pull from the right winners matches."""
        index = build_match_index(rounds)
        lr1 = index["LR1M1"]
        assert (lr1.team1.kind, lr1.team1.source_match_id) == ("loser-of", "WR1M2")
        assert (lr1.team2.kind, lr1.team2.source_match_id) == ("loser-of", "WR1M3")
        lr2 = index["LR2M1"]
        assert lr2.team1.source_match_id == "LR1M1"
        assert (lr2.team2.kind, lr2.team2.source_match_id) == ("loser-of", "WR2M1")
        lr4 = index["LR4M1"]
        assert lr4.team1.source_match_id == "LR2M1"
        assert lr4.team2.source_match_id == "WR3M1"

    def test_loser_advancement_targets_real_round(self, rounds):
        """The winners final loser is sent to round 4, not a skipped round."""
        index = build_match_index(rounds)
        adv = index["WR3M1"].loser_advances_to
        assert (adv.bracket_type, adv.round_number, adv.match_position, adv.slot) == (LOSERS, 4, 0, 'team2')

    def test_championship(self, rounds):
        """Winners champion meets the losers champion."""
        finals = rounds_of(rounds, FINALS)
        assert len(finals) == 1
        assert finals[0].name == "Championship"
        championship = finals[0].matches[0]
        assert championship.match_id == "FR1M1"
        assert championship.team1.source_match_id == "WR3M1"
        assert championship.team2.source_match_id == "LR4M1"


class TestSmallBrackets:
    """Edge sizes."""

    def test_two_teams(self):
        """Two teams: one winners match, loser gets a rematch in the Championship."""
        rounds = generate_double_elimination_rounds(["A", "B"])
        assert [r.name for r in rounds] == ["Winners Final", "Championship"]
        championship = rounds[-1].matches[0]
        assert (championship.team1.kind, championship.team1.source_match_id) == ("winner-of", "WR1M1")
        assert (championship.team2.kind, championship.team2.source_match_id) == ("loser-of", "WR1M1")

    def test_three_teams(self):
        """Three teams: the lone round 1 loser waits for the winners final loser."""
        rounds = generate_double_elimination_rounds(["A", "B", "C"])
        losers = rounds_of(rounds, LOSERS)
        assert len(losers) == 1
        assert losers[0].round_number == 2
        match = losers[0].matches[0]
        assert match.team1.source_match_id == "WR1M2"
        assert match.team2.source_match_id == "WR2M1"

    def test_four_teams(self):
        """Four teams: a standard two round losers bracket."""
        names = get_round_names(4, "double-elimination")
        assert names == ["Winners Semifinals", "Winners Final", "L Round 1", "L Final", "Championship"]

    def test_question_sets_follow_round_counter(self):
        """Question sets are keyed by a running counter across sections."""
        rounds = generate_double_elimination_rounds(team_names(4), {1: "w1", 3: "l1", 5: "final"})
        assert [r.question_set_id for r in rounds] == ["w1", "", "l1", "", "final"]

    def test_fewer_than_two_teams(self):
        """No bracket for a single team."""
        assert generate_double_elimination_rounds(["A"]) == []


@pytest.mark.slow
class TestDoubleEliminationSweep:
    """Structural checks across team counts."""

    @pytest.mark.parametrize("count", range(2, 33))
    def test_real_match_count(self, count):
        """Every team but the champion loses twice, except one loses once: 2n-2 real matches."""
        rounds = build_bracket("double-elimination", team_names(count))
        real = [m for r in rounds for m in r.matches if not m.is_bye]
        assert len(real) == 2 * count - 2

    @pytest.mark.parametrize("count", range(2, 33))
    def test_references_point_backwards(self, count):
        """Every reference names an existing match from an earlier round."""
        rounds = generate_double_elimination_rounds(team_names(count))
        seen = set()
        for round_ in rounds:
            for match in round_.matches:
                for slot in match.slots:
                    if slot.is_reference:
                        assert slot.source_match_id in seen
            seen.update(m.match_id for m in round_.matches)

    @pytest.mark.parametrize("count", range(2, 33))
    def test_advancement_records_agree_with_slots(self, count):
        """winner/loser advancement records point at the slot that references the match."""
        rounds = generate_double_elimination_rounds(team_names(count))
        by_key = {(r.bracket_type, r.round_number): r for r in rounds}
        for round_ in rounds:
            for match in round_.matches:
                for adv, kind in ((match.winner_advances_to, 'winner-of'),
                                  (match.loser_advances_to, 'loser-of')):
                    if adv is None:
                        continue
                    slot = by_key[(adv.bracket_type, adv.round_number)].matches[adv.match_position].slot(adv.slot)
                    assert slot.kind == kind
                    assert slot.source_match_id == match.match_id
