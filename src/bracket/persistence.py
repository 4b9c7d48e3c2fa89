"""
Saved tournaments: named save records kept in a key-value store.

Only the most recently modified saves are kept (10 by default).
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from bracket.elimination import get_current_round
from bracket.models import Contestant, Tournament
from bracket.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAVED = 10

PHASE_MENU = 'menu'
PHASE_SAVED_TOURNAMENTS = 'saved-tournaments'
PHASE_SETUP = 'setup'
PHASE_BRACKET_GENERATION = 'bracket-generation'
PHASE_MANUAL_SETUP = 'manual-setup'
PHASE_TOURNAMENT = 'tournament'
PHASE_COMPLETE = 'complete'

PHASES = (
    PHASE_MENU,
    PHASE_SAVED_TOURNAMENTS,
    PHASE_SETUP,
    PHASE_BRACKET_GENERATION,
    PHASE_MANUAL_SETUP,
    PHASE_TOURNAMENT,
    PHASE_COMPLETE,
)
SETUP_PHASES = {PHASE_SETUP, PHASE_BRACKET_GENERATION, PHASE_MANUAL_SETUP}


class SavedTournament:
    def __init__(self, id, name, tournament, phase, contestants, saved_at, last_modified):
        self.id = id
        self.name = name
        self.tournament = tournament
        self.phase = phase
        self.contestants = list(contestants)
        self.saved_at = saved_at
        self.last_modified = last_modified

    def __repr__(self):
        return f"SavedTournament(id={self.id}, name={self.name}, phase={self.phase})"

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'tournament': self.tournament.to_dict(),
            'phase': self.phase,
            'contestants': [c.to_dict() for c in self.contestants],
            'saved_at': self.saved_at,
            'last_modified': self.last_modified,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'SavedTournament':
        return cls(
            id=data['id'],
            name=data['name'],
            tournament=Tournament.from_dict(data['tournament']),
            phase=data['phase'],
            contestants=[Contestant.from_dict(c) for c in data['contestants']],
            saved_at=data['saved_at'],
            last_modified=data['last_modified'],
        )


def validate_saved_tournament(data) -> bool:
    """Check that a stored record has everything needed to load it."""
    if not isinstance(data, dict):
        return False
    tournament = data.get('tournament')
    if not isinstance(tournament, dict):
        return False
    try:
        return bool(
            data.get('id')
            and data.get('name')
            and data.get('phase')
            and isinstance(data.get('contestants'), list)
            and isinstance(tournament.get('matches'), list)
            and int(tournament.get('total_rounds', 0)) > 0
        )
    except (TypeError, ValueError):
        return False


def get_progress_description(tournament: Tournament, phase: str) -> str:
    """Short human-readable progress line, used to name auto-saves."""
    if phase in SETUP_PHASES:
        return 'Setup phase'

    if phase == PHASE_COMPLETE:
        winner_name = tournament.winner.name if tournament.winner else 'unknown'
        return f'Complete - Winner: {winner_name}'

    matches = tournament.match_list()
    completed = sum(1 for m in matches if m.is_finished)
    return f'Round {get_current_round(tournament)} - {completed}/{len(matches)} matches complete'


class TournamentRepository:
    """Save, list, load and delete tournaments in a key-value store."""

    def __init__(self, store: KeyValueStore, max_saved: int = DEFAULT_MAX_SAVED,
                 clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.max_saved = max_saved
        self._clock = clock

    def save(self, name: str, tournament: Tournament, phase: str,
             contestants: List[Contestant]) -> SavedTournament:
        """Create or update the save for tournament.id, then enforce the retention cap."""
        now = self._clock()
        timestamp = now.isoformat()
        name = (name or '').strip() or f'Tournament {now.strftime("%Y-%m-%d")}'

        existing = self.store.get(tournament.id)
        saved_at = timestamp
        if validate_saved_tournament(existing):
            saved_at = existing['saved_at']

        record = SavedTournament(
            id=tournament.id,
            name=name,
            tournament=tournament,
            phase=phase,
            contestants=contestants,
            saved_at=saved_at,
            last_modified=timestamp,
        )
        self.store.put(record.id, record.to_dict())
        self._enforce_retention()
        return record

    def auto_save(self, tournament: Tournament, phase: str,
                  contestants: List[Contestant]) -> SavedTournament:
        return self.save(f'Auto-save: {get_progress_description(tournament, phase)}',
                         tournament, phase, contestants)

    def list(self) -> List[SavedTournament]:
        """All readable saves, most recently modified first."""
        saves = []
        for key in self.store.list():
            record = self._read(key)
            if record is not None:
                saves.append(record)
        saves.sort(key=lambda s: s.last_modified, reverse=True)
        return saves

    def load(self, tournament_id: str) -> Optional[SavedTournament]:
        return self._read(tournament_id)

    def delete(self, tournament_id: str):
        self.store.delete(tournament_id)

    def _read(self, key: str) -> Optional[SavedTournament]:
        data = self.store.get(key)
        if data is None:
            return None
        if not validate_saved_tournament(data):
            logger.warning(f'Skipping corrupted saved tournament {key}')
            return None
        try:
            return SavedTournament.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f'Failed to load saved tournament {key}: {e}')
            return None

    def _enforce_retention(self):
        saves = self.list()
        for stale in saves[self.max_saved:]:
            logger.info(f'Dropping saved tournament {stale.id} ({stale.name}) over retention cap')
            self.store.delete(stale.id)
