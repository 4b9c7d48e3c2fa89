"""
Read-only share links for tournaments.
"""
import logging
import uuid
from typing import Optional

from bracket.elimination import InvalidInputError
from bracket.models import Tournament
from bracket.storage import KeyValueStore

logger = logging.getLogger(__name__)


class ShareService:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def share(self, tournament: Tournament) -> str:
        """Store a public copy of the tournament and return its share id."""
        if tournament is None or not tournament.id:
            raise InvalidInputError('Invalid tournament data')

        share_id = str(uuid.uuid4())
        shared = tournament.copy()
        shared.is_public = True
        shared.share_id = share_id
        self.store.put(share_id, shared.to_dict())
        logger.info(f'Shared tournament {tournament.id} as {share_id}')
        return share_id

    def get(self, share_id: str) -> Optional[Tournament]:
        """Return the shared copy, or None if it is missing or not public."""
        if not share_id or not isinstance(share_id, str):
            return None
        try:
            data = self.store.get(share_id)
        except ValueError:
            return None
        if not data:
            return None
        try:
            tournament = Tournament.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f'Failed to read shared tournament {share_id}: {e}')
            return None
        if not tournament.is_public or tournament.share_id != share_id:
            return None
        return tournament
