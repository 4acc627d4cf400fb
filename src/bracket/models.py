"""
Data model for elimination tournaments.

Everything here serializes to plain dicts so a tournament can be written to
YAML and read back without object identity. Matches refer to each other only
through their match ids.
"""

SINGLE_ELIMINATION = 'single-elimination'
DOUBLE_ELIMINATION = 'double-elimination'
TOURNAMENT_TYPES = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION)

STATUS_SETUP = 'setup'
STATUS_IN_PROGRESS = 'in-progress'
STATUS_COMPLETED = 'completed'
TOURNAMENT_STATUSES = (STATUS_SETUP, STATUS_IN_PROGRESS, STATUS_COMPLETED)

WINNERS = 'winners'
LOSERS = 'losers'
FINALS = 'finals'
BRACKET_TYPES = (WINNERS, LOSERS, FINALS)

SEEDING_MANUAL = 'manual'
SEEDING_RANDOM = 'random'
SEEDING_METHODS = (SEEDING_MANUAL, SEEDING_RANDOM)

SLOT_TEAM = 'team'
SLOT_BYE = 'bye'
SLOT_WINNER_OF = 'winner-of'
SLOT_LOSER_OF = 'loser-of'
SLOT_KINDS = (SLOT_TEAM, SLOT_BYE, SLOT_WINNER_OF, SLOT_LOSER_OF)


def generate_match_id(round_number: int, position: int, bracket_type: str) -> str:
    """Deterministic match id, e.g. ``WR2M1`` for winners round 2, position 0."""
    prefix = {WINNERS: 'W', LOSERS: 'L'}.get(bracket_type, 'F')
    return f"{prefix}R{round_number}M{position + 1}"


class TeamSlot:
    """One competitor position of a match.

    Exactly one of four kinds is active:
    - ``team``: ``team_name`` is set
    - ``bye``: vacant position
    - ``winner-of`` / ``loser-of``: ``source_match_id`` points at the match
      whose winner (or loser) will fill this slot
    """

    def __init__(self, kind, team_name=None, source_match_id=None):
        if kind not in SLOT_KINDS:
            raise ValueError(f"Unknown slot kind: {kind}")
        self.kind = kind
        self.team_name = team_name
        self.source_match_id = source_match_id

    @classmethod
    def team(cls, team_name):
        return cls(SLOT_TEAM, team_name=team_name)

    @classmethod
    def bye(cls):
        return cls(SLOT_BYE)

    @classmethod
    def winner_of(cls, match_id):
        return cls(SLOT_WINNER_OF, source_match_id=match_id)

    @classmethod
    def loser_of(cls, match_id):
        return cls(SLOT_LOSER_OF, source_match_id=match_id)

    @property
    def is_bye(self):
        return self.kind == SLOT_BYE

    @property
    def is_reference(self):
        return self.kind in (SLOT_WINNER_OF, SLOT_LOSER_OF)

    def set_team(self, team_name):
        self.kind = SLOT_TEAM
        self.team_name = team_name
        self.source_match_id = None

    def set_bye(self):
        self.kind = SLOT_BYE
        self.team_name = None
        self.source_match_id = None

    def to_dict(self):
        data = {'type': self.kind}
        if self.kind == SLOT_TEAM:
            data['team_name'] = self.team_name
        elif self.is_reference:
            data['source_match_id'] = self.source_match_id
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(data['type'], team_name=data.get('team_name'),
                   source_match_id=data.get('source_match_id'))

    def __eq__(self, other):
        if not isinstance(other, TeamSlot):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        if self.kind == SLOT_TEAM:
            return f"TeamSlot(team={self.team_name})"
        if self.is_reference:
            return f"TeamSlot({self.kind}={self.source_match_id})"
        return "TeamSlot(bye)"


class MatchResult:
    def __init__(self, team1_score, team2_score, winner_team_name, loser_team_name,
                 played_locally=False, completed_at=None):
        self.team1_score = team1_score
        self.team2_score = team2_score
        self.winner_team_name = winner_team_name
        # Empty string means there was no real opponent (bye).
        self.loser_team_name = loser_team_name
        self.played_locally = played_locally
        self.completed_at = completed_at

    @property
    def is_bye_result(self):
        return self.loser_team_name == ''

    def to_dict(self):
        return {
            'team1_score': self.team1_score,
            'team2_score': self.team2_score,
            'winner_team_name': self.winner_team_name,
            'loser_team_name': self.loser_team_name,
            'played_locally': self.played_locally,
            'completed_at': self.completed_at,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data.get('team1_score', 0),
            data.get('team2_score', 0),
            data.get('winner_team_name', ''),
            data.get('loser_team_name', ''),
            played_locally=data.get('played_locally', False),
            completed_at=data.get('completed_at'),
        )

    def __repr__(self):
        return (f"MatchResult({self.team1_score}-{self.team2_score}, "
                f"winner={self.winner_team_name!r}, loser={self.loser_team_name!r})")


class MatchAdvancement:
    """Where a match's winner or loser goes next."""

    def __init__(self, bracket_type, round_number, match_position, slot):
        self.bracket_type = bracket_type
        self.round_number = round_number
        self.match_position = match_position
        self.slot = slot  # 'team1' or 'team2'

    def to_dict(self):
        return {
            'bracket_type': self.bracket_type,
            'round_number': self.round_number,
            'match_position': self.match_position,
            'slot': self.slot,
        }

    @classmethod
    def from_dict(cls, data):
        if data is None:
            return None
        return cls(data['bracket_type'], data['round_number'],
                   data['match_position'], data['slot'])

    def __eq__(self, other):
        if not isinstance(other, MatchAdvancement):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"MatchAdvancement({self.bracket_type} R{self.round_number} "
                f"M{self.match_position + 1} {self.slot})")


class Match:
    def __init__(self, match_id, position, team1, team2, quiz_number=0, result=None,
                 winner_advances_to=None, loser_advances_to=None):
        self.match_id = match_id
        self.position = position
        self.quiz_number = quiz_number
        self.team1 = team1
        self.team2 = team2
        self.result = result
        self.winner_advances_to = winner_advances_to
        self.loser_advances_to = loser_advances_to

    @property
    def slots(self):
        return (self.team1, self.team2)

    def slot(self, name):
        return self.team1 if name == 'team1' else self.team2

    @property
    def is_bye(self):
        """A bye match never gets played or numbered."""
        return self.team1.is_bye or self.team2.is_bye

    def to_dict(self):
        return {
            'match_id': self.match_id,
            'position': self.position,
            'quiz_number': self.quiz_number,
            'team1': self.team1.to_dict(),
            'team2': self.team2.to_dict(),
            'result': self.result.to_dict() if self.result else None,
            'winner_advances_to': self.winner_advances_to.to_dict() if self.winner_advances_to else None,
            'loser_advances_to': self.loser_advances_to.to_dict() if self.loser_advances_to else None,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['match_id'],
            data['position'],
            TeamSlot.from_dict(data['team1']),
            TeamSlot.from_dict(data['team2']),
            quiz_number=data.get('quiz_number', 0),
            result=MatchResult.from_dict(data['result']) if data.get('result') else None,
            winner_advances_to=MatchAdvancement.from_dict(data.get('winner_advances_to')),
            loser_advances_to=MatchAdvancement.from_dict(data.get('loser_advances_to')),
        )

    def __repr__(self):
        return f"Match({self.match_id}, {self.team1!r} vs {self.team2!r}, quiz={self.quiz_number})"


class Round:
    def __init__(self, round_number, bracket_type, name, question_set_id='', matches=None):
        self.round_number = round_number
        self.bracket_type = bracket_type
        self.name = name
        self.question_set_id = question_set_id
        self.matches = matches if matches else []

    def to_dict(self):
        return {
            'round_number': self.round_number,
            'bracket_type': self.bracket_type,
            'name': self.name,
            'question_set_id': self.question_set_id,
            'matches': [m.to_dict() for m in self.matches],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['round_number'],
            data['bracket_type'],
            data['name'],
            question_set_id=data.get('question_set_id', ''),
            matches=[Match.from_dict(m) for m in data.get('matches', [])],
        )

    def __repr__(self):
        return f"Round({self.bracket_type} {self.round_number}, name={self.name}, matches={len(self.matches)})"


class Tournament:
    def __init__(self, tournament_id, name, type, status, team_names, dataset_id='',
                 rounds=None, created_at=None, updated_at=None):
        self.tournament_id = tournament_id
        self.name = name
        self.type = type
        self.status = status
        self.team_names = list(team_names)
        self.dataset_id = dataset_id
        self.rounds = rounds if rounds else []
        self.created_at = created_at
        self.updated_at = updated_at

    def iter_matches(self):
        for round_ in self.rounds:
            for match in round_.matches:
                yield match

    def to_dict(self):
        return {
            'tournament_id': self.tournament_id,
            'name': self.name,
            'type': self.type,
            'status': self.status,
            'team_names': list(self.team_names),
            'dataset_id': self.dataset_id,
            'rounds': [r.to_dict() for r in self.rounds],
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['tournament_id'],
            data['name'],
            data['type'],
            data['status'],
            data.get('team_names', []),
            dataset_id=data.get('dataset_id', ''),
            rounds=[Round.from_dict(r) for r in data.get('rounds', [])],
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    def __repr__(self):
        return f"Tournament(id={self.tournament_id}, name={self.name}, type={self.type}, status={self.status})"


class MatchSummary:
    """Score line kept for statistics, keyed by the tournament name as quiz id."""

    def __init__(self, quiz_id, match_id, team1, team2, score1, score2):
        self.quiz_id = quiz_id
        self.match_id = match_id
        self.team1 = team1
        self.team2 = team2
        self.score1 = score1
        self.score2 = score2

    def to_dict(self):
        return {
            'quiz_id': self.quiz_id,
            'match_id': self.match_id,
            'team1': self.team1,
            'team2': self.team2,
            'score1': self.score1,
            'score2': self.score2,
        }

    def __repr__(self):
        return f"MatchSummary({self.match_id}: {self.team1} {self.score1} - {self.score2} {self.team2})"
