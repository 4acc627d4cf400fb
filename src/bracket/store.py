"""
YAML-file tournament store.

One file per tournament under ``<data_dir>/tournaments/``, plus an append
log of match summaries. Writes are serialized with a file lock so two
processes sharing a data directory do not interleave.
"""
import logging
import os
import re
from typing import List, Optional

import yaml
from filelock import FileLock

from .models import MatchSummary, Tournament

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

_SAFE_ID = re.compile(r'^[A-Za-z0-9_-]+$')


class TournamentStore:
    def __init__(self, data_dir=None, lock_timeout=10):
        self.data_dir = data_dir or DEFAULT_DATA_DIR
        self.tournaments_dir = os.path.join(self.data_dir, 'tournaments')
        self.summaries_file = os.path.join(self.data_dir, 'match_summaries.yaml')
        os.makedirs(self.tournaments_dir, exist_ok=True)
        self._lock = FileLock(os.path.join(self.data_dir, '.lock'), timeout=lock_timeout)

    def _path(self, tournament_id: str) -> Optional[str]:
        if not tournament_id or not _SAFE_ID.match(tournament_id):
            return None
        return os.path.join(self.tournaments_dir, f'{tournament_id}.yaml')

    def _read(self, path: str) -> Optional[Tournament]:
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            return Tournament.from_dict(data) if data else None
        except (yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            logger.warning(f'Failed to parse {path}: {e}')
            return None

    def _write(self, tournament: Tournament):
        path = self._path(tournament.tournament_id)
        if path is None:
            raise ValueError(f'Invalid tournament id: {tournament.tournament_id!r}')
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(tournament.to_dict(), f, default_flow_style=False, sort_keys=False)

    def add_tournament(self, tournament: Tournament):
        with self._lock:
            self._write(tournament)

    def update_tournament(self, tournament: Tournament):
        with self._lock:
            self._write(tournament)

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        path = self._path(tournament_id)
        if path is None:
            return None
        with self._lock:
            return self._read(path)

    def delete_tournament(self, tournament_id: str) -> bool:
        path = self._path(tournament_id)
        if path is None:
            return False
        with self._lock:
            if not os.path.exists(path):
                return False
            os.remove(path)
            return True

    def list_tournaments(self, status: Optional[str] = None) -> List[Tournament]:
        """All stored tournaments, newest first, optionally filtered by status."""
        tournaments = []
        with self._lock:
            for filename in sorted(os.listdir(self.tournaments_dir)):
                if not filename.endswith('.yaml'):
                    continue
                tournament = self._read(os.path.join(self.tournaments_dir, filename))
                if tournament is None:
                    continue
                if status is None or tournament.status == status:
                    tournaments.append(tournament)
        tournaments.sort(key=lambda t: t.created_at or '', reverse=True)
        return tournaments

    def save_match_summary(self, summary: MatchSummary):
        with self._lock:
            summaries = self._load_summaries()
            summaries.append(summary.to_dict())
            with open(self.summaries_file, 'w', encoding='utf-8') as f:
                yaml.safe_dump({'summaries': summaries}, f, default_flow_style=False, sort_keys=False)

    def get_match_summaries(self, quiz_id: Optional[str] = None) -> List[dict]:
        with self._lock:
            summaries = self._load_summaries()
        if quiz_id is None:
            return summaries
        return [s for s in summaries if s.get('quiz_id') == quiz_id]

    def _load_summaries(self) -> List[dict]:
        if not os.path.exists(self.summaries_file):
            return []
        try:
            with open(self.summaries_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning(f'Failed to parse {self.summaries_file}: {e}')
            return []
        return data.get('summaries', []) if data else []
