"""
Unit tests for the data models (Contestant, Match, Tournament).
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.models import Contestant, Match, Tournament
from bracket.elimination import generate_bracket, advance_winner, update_match_report


class TestContestant:
    """Tests for the Contestant model."""

    def test_identity_is_id(self):
        """Two contestants with the same id are equal, whatever the name."""
        assert Contestant('c1', 'Alice') == Contestant('c1', 'Alice (renamed)')
        assert Contestant('c1', 'Alice') != Contestant('c2', 'Alice')

    def test_hashable_by_id(self):
        """Contestants can be used in sets and as dict keys."""
        assert len({Contestant('c1', 'A'), Contestant('c1', 'A'), Contestant('c2', 'B')}) == 2

    def test_contestant_repr(self):
        """Test contestant string representation."""
        repr_str = repr(Contestant('c1', 'Alice'))
        assert 'c1' in repr_str
        assert 'Alice' in repr_str

    def test_dict_round_trip(self):
        contestant = Contestant('c1', 'Alice')
        assert contestant.to_dict() == {'id': 'c1', 'name': 'Alice'}
        assert Contestant.from_dict(contestant.to_dict()) == contestant


class TestMatch:
    """Tests for the Match model."""

    def test_match_defaults(self):
        """A new match has no contestants and no result."""
        match = Match(id='match-1', round=1, position=0)
        assert match.contestant1 is None
        assert match.contestant2 is None
        assert match.winner is None
        assert match.is_finished is False
        assert match.is_bye is False
        assert match.report is None

    def test_is_ready(self):
        """A match is ready when both slots are filled and it is not finished."""
        a, b = Contestant('a', 'A'), Contestant('b', 'B')
        assert not Match('m', 1, 0, contestant1=a).is_ready
        assert Match('m', 1, 0, contestant1=a, contestant2=b).is_ready
        assert not Match('m', 1, 0, contestant1=a, contestant2=b, winner=a, is_finished=True).is_ready

    def test_has_contestant(self):
        a, b, c = Contestant('a', 'A'), Contestant('b', 'B'), Contestant('c', 'C')
        match = Match('m', 1, 0, contestant1=a, contestant2=b)
        assert match.has_contestant(a)
        assert match.has_contestant(b)
        assert not match.has_contestant(c)
        assert not match.has_contestant(None)

    def test_copy_is_independent(self):
        a = Contestant('a', 'A')
        match = Match('m', 1, 0, contestant1=a)
        clone = match.copy()
        clone.is_finished = True
        assert match.is_finished is False
        assert clone.contestant1 is a

    def test_dict_round_trip_with_empty_slots(self):
        a = Contestant('a', 'A')
        match = Match('m', 2, 1, contestant2=a, report='Close game')
        data = match.to_dict()
        assert data['contestant1'] is None
        assert data['contestant2'] == {'id': 'a', 'name': 'A'}
        assert Match.from_dict(data) == match


class TestTournament:
    """Tests for the Tournament model."""

    def test_matches_keep_creation_order(self, four_contestants):
        tournament = generate_bracket(four_contestants, shuffle=False)
        assert [m.id for m in tournament.match_list()] == ['match-1', 'match-2', 'match-3']

    def test_dict_round_trip_fresh_bracket(self, three_contestants):
        tournament = generate_bracket(three_contestants, shuffle=False)
        assert Tournament.from_dict(tournament.to_dict()) == tournament

    def test_dict_round_trip_played_bracket(self, four_contestants):
        a, b, c, d = four_contestants
        tournament = generate_bracket(four_contestants, shuffle=False)
        tournament = advance_winner(tournament, 'match-1', a)
        tournament = advance_winner(tournament, 'match-2', c)
        tournament = advance_winner(tournament, 'match-3', c)
        tournament = update_match_report(tournament, 'match-3', 'C wins in straight sets')

        restored = Tournament.from_dict(tournament.to_dict())
        assert restored == tournament
        assert restored.is_complete is True
        assert restored.winner == c
        assert restored.matches['match-3'].report == 'C wins in straight sets'

    def test_to_dict_is_plain_data(self, four_contestants):
        """Serialized tournaments only hold plain types."""
        tournament = generate_bracket(four_contestants, shuffle=False)

        def check(value):
            if isinstance(value, dict):
                for k, v in value.items():
                    assert isinstance(k, str)
                    check(v)
            elif isinstance(value, list):
                for v in value:
                    check(v)
            else:
                assert value is None or isinstance(value, (str, int, bool))

        check(tournament.to_dict())

    def test_copy_does_not_share_matches(self, four_contestants):
        tournament = generate_bracket(four_contestants, shuffle=False)
        clone = tournament.copy()
        clone.matches['match-1'].is_finished = True
        assert tournament.matches['match-1'].is_finished is False

    def test_tournament_repr(self, four_contestants):
        tournament = generate_bracket(four_contestants, shuffle=False)
        assert tournament.id in repr(tournament)
