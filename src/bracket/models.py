"""
Bracket data models: contestants, matches and tournaments.

All models convert to and from plain dicts so that stores and the web layer
can persist them without knowing their shape.
"""
from typing import Dict, List, Optional


class Contestant:
    def __init__(self, id, name):
        self.id = id
        self.name = name

    def __eq__(self, other):
        if not isinstance(other, Contestant):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Contestant(id={self.id}, name={self.name})"

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Contestant':
        return cls(id=data['id'], name=data['name'])


def _contestant_or_none(data: Optional[Dict]) -> Optional[Contestant]:
    return Contestant.from_dict(data) if data else None


def _same_contestant(a: Optional[Contestant], b: Optional[Contestant]) -> bool:
    if a is None or b is None:
        return a is b
    return a.id == b.id and a.name == b.name


class Match:
    def __init__(self, id, round, position, contestant1=None, contestant2=None,
                 winner=None, is_finished=False, is_bye=False, report=None):
        self.id = id
        self.round = round
        self.position = position
        self.contestant1 = contestant1
        self.contestant2 = contestant2
        self.winner = winner
        self.is_finished = is_finished
        self.is_bye = is_bye
        self.report = report  # Free-text annotation, never read by the engine

    @property
    def is_ready(self) -> bool:
        """A match is ready when both slots are filled and no winner is recorded."""
        return bool(self.contestant1 and self.contestant2 and not self.is_finished)

    def has_contestant(self, contestant: Optional[Contestant]) -> bool:
        if contestant is None:
            return False
        return any(c is not None and c.id == contestant.id
                   for c in (self.contestant1, self.contestant2))

    def copy(self) -> 'Match':
        return Match(self.id, self.round, self.position, self.contestant1, self.contestant2,
                     self.winner, self.is_finished, self.is_bye, self.report)

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return (self.id == other.id
                and self.round == other.round
                and self.position == other.position
                and _same_contestant(self.contestant1, other.contestant1)
                and _same_contestant(self.contestant2, other.contestant2)
                and _same_contestant(self.winner, other.winner)
                and self.is_finished == other.is_finished
                and self.is_bye == other.is_bye
                and self.report == other.report)

    def __repr__(self):
        return (f"Match(id={self.id}, round={self.round}, position={self.position}, "
                f"contestant1={self.contestant1}, contestant2={self.contestant2}, "
                f"winner={self.winner}, is_finished={self.is_finished}, is_bye={self.is_bye})")

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'round': self.round,
            'position': self.position,
            'contestant1': self.contestant1.to_dict() if self.contestant1 else None,
            'contestant2': self.contestant2.to_dict() if self.contestant2 else None,
            'winner': self.winner.to_dict() if self.winner else None,
            'is_finished': self.is_finished,
            'is_bye': self.is_bye,
            'report': self.report,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=data['id'],
            round=int(data['round']),
            position=int(data['position']),
            contestant1=_contestant_or_none(data.get('contestant1')),
            contestant2=_contestant_or_none(data.get('contestant2')),
            winner=_contestant_or_none(data.get('winner')),
            is_finished=bool(data.get('is_finished', False)),
            is_bye=bool(data.get('is_bye', False)),
            report=data.get('report'),
        )


class Tournament:
    def __init__(self, id, contestants, matches, total_rounds, current_round=1,
                 is_complete=False, winner=None, is_public=False, share_id=None):
        self.id = id
        self.contestants = list(contestants)
        # Keyed by match id; insertion order is creation order
        self.matches = {m.id: m for m in matches}
        self.total_rounds = total_rounds
        self.current_round = current_round
        self.is_complete = is_complete
        self.winner = winner
        self.is_public = is_public
        self.share_id = share_id

    def match_list(self) -> List[Match]:
        return list(self.matches.values())

    def copy(self) -> 'Tournament':
        """Copy with fresh Match objects; contestants are immutable and shared."""
        return Tournament(
            id=self.id,
            contestants=self.contestants,
            matches=[m.copy() for m in self.matches.values()],
            total_rounds=self.total_rounds,
            current_round=self.current_round,
            is_complete=self.is_complete,
            winner=self.winner,
            is_public=self.is_public,
            share_id=self.share_id,
        )

    def __eq__(self, other):
        if not isinstance(other, Tournament):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Tournament(id={self.id}, contestants={len(self.contestants)}, "
                f"total_rounds={self.total_rounds}, is_complete={self.is_complete}, "
                f"winner={self.winner})")

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'contestants': [c.to_dict() for c in self.contestants],
            'matches': [m.to_dict() for m in self.matches.values()],
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'is_complete': self.is_complete,
            'winner': self.winner.to_dict() if self.winner else None,
            'is_public': self.is_public,
            'share_id': self.share_id,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        return cls(
            id=data['id'],
            contestants=[Contestant.from_dict(c) for c in data.get('contestants', [])],
            matches=[Match.from_dict(m) for m in data.get('matches', [])],
            total_rounds=int(data['total_rounds']),
            current_round=int(data.get('current_round', 1)),
            is_complete=bool(data.get('is_complete', False)),
            winner=_contestant_or_none(data.get('winner')),
            is_public=bool(data.get('is_public', False)),
            share_id=data.get('share_id'),
        )
