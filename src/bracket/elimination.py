"""
Single elimination bracket generation and management.

Every public function takes a Tournament and returns a new one; the caller's
value is never mutated. Parent/child links between matches are implicit: the
winner of match (round, position) feeds match (round + 1, position // 2),
filling contestant1 from an even position and contestant2 from an odd one.
"""
import logging
import math
import random
import uuid
from typing import Dict, List, Optional, Tuple

from bracket.models import Contestant, Match, Tournament

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when a bracket operation is given input it cannot work with."""


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def get_round_label(tournament: Tournament, round_number: int) -> str:
    """Display name for a round of this tournament ("Final", "Semifinal", ...)."""
    return get_round_name(2 ** (tournament.total_rounds - round_number + 1))


def calculate_bracket_size(num_contestants: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_contestants <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_contestants))


def calculate_total_rounds(num_contestants: int) -> int:
    """Number of rounds needed for a single elimination bracket."""
    if num_contestants < 2:
        return 0
    return math.ceil(math.log2(num_contestants))


def move_contestant(contestants: List[Contestant], from_index: int, to_index: int) -> List[Contestant]:
    """
    Return a new seed order with one contestant moved to another position.

    Used for manual bracket setup; the result is meant to be passed to
    generate_bracket(..., shuffle=False).
    """
    count = len(contestants)
    if not (0 <= from_index < count) or not (0 <= to_index < count):
        raise InvalidInputError(f"Cannot move seed {from_index} to {to_index} in a list of {count}")
    order = list(contestants)
    if from_index == to_index:
        return order
    moved = order.pop(from_index)
    order.insert(to_index, moved)
    return order


def generate_bracket(contestants: List[Contestant], shuffle: bool = True,
                     rng: Optional[random.Random] = None) -> Tournament:
    """
    Build a fresh single elimination bracket.

    Round 1 pairs seeds 2p and 2p+1 into match p. A round-1 match that only
    gets one seed is a bye, finished at creation with that seed as winner.
    Later rounds are created empty and filled by advance_winner.

    Args:
        contestants: Seed order
        shuffle: Randomly permute the seed order first
        rng: Random source used for the shuffle (defaults to the module RNG)

    Raises:
        InvalidInputError: fewer than 2 contestants
    """
    if len(contestants) < 2:
        raise InvalidInputError('Tournament requires at least 2 contestants')

    seeds = list(contestants)
    if shuffle:
        (rng or random).shuffle(seeds)

    total_rounds = calculate_total_rounds(len(seeds))
    matches = []
    match_number = 1

    for round_number in range(1, total_rounds + 1):
        matches_in_round = 2 ** (total_rounds - round_number)
        for position in range(matches_in_round):
            match = Match(id=f'match-{match_number}', round=round_number, position=position)
            match_number += 1

            if round_number == 1:
                first, second = position * 2, position * 2 + 1
                match.contestant1 = seeds[first] if first < len(seeds) else None
                match.contestant2 = seeds[second] if second < len(seeds) else None
                if match.contestant1 and not match.contestant2:
                    match.is_bye = True
                    match.is_finished = True
                    match.winner = match.contestant1

            matches.append(match)

    logger.debug("Built bracket: %d contestants, %d rounds, %d matches",
                 len(seeds), total_rounds, len(matches))

    return Tournament(
        id=str(uuid.uuid4()),
        contestants=seeds,
        matches=matches,
        total_rounds=total_rounds,
        current_round=1,
        is_complete=False,
    )


def _index_matches(tournament: Tournament) -> Dict[Tuple[int, int], Match]:
    return {(m.round, m.position): m for m in tournament.matches.values()}


def _parent_of(index: Dict[Tuple[int, int], Match], match: Match) -> Optional[Match]:
    return index.get((match.round + 1, match.position // 2))


def _set_slot(parent: Match, child_position: int, contestant: Optional[Contestant]):
    """Write into the parent slot fed by the child at child_position."""
    if child_position % 2 == 0:
        parent.contestant1 = contestant
    else:
        parent.contestant2 = contestant


def _fill_slot_if_empty(parent: Match, child_position: int, contestant: Contestant):
    if child_position % 2 == 0:
        if parent.contestant1 is None:
            parent.contestant1 = contestant
    elif parent.contestant2 is None:
        parent.contestant2 = contestant


def _subtree_has_contestants(index: Dict[Tuple[int, int], Match], round_number: int, position: int) -> bool:
    """True if any round-1 match under (round_number, position) was seeded."""
    span = 2 ** (round_number - 1)
    for first_round_position in range(position * span, (position + 1) * span):
        feeder = index.get((1, first_round_position))
        if feeder is not None and (feeder.contestant1 or feeder.contestant2):
            return True
    return False


def _promote_bye(index: Dict[Tuple[int, int], Match], match: Match) -> bool:
    """
    Turn a later-round match into a finished bye when its missing slot can
    never be filled, i.e. nothing was seeded anywhere below that slot.

    Returns True if the match was promoted.
    """
    if match.is_finished or match.round == 1:
        return False
    present = [c for c in (match.contestant1, match.contestant2) if c is not None]
    if len(present) != 1:
        return False

    missing_position = match.position * 2 + (1 if match.contestant1 is not None else 0)
    if _subtree_has_contestants(index, match.round - 1, missing_position):
        return False

    match.is_bye = True
    match.is_finished = True
    match.winner = present[0]
    logger.debug("Promoted %s to a bye for %s", match.id, match.winner.name)
    return True


def _settle(index: Dict[Tuple[int, int], Match], match: Match):
    """Pull finished feeder winners into an unfinished match and resolve byes below it."""
    if match.is_finished or match.round == 1:
        return
    for child_position in (match.position * 2, match.position * 2 + 1):
        feeder = index.get((match.round - 1, child_position))
        if feeder is None:
            continue
        _settle(index, feeder)
        if feeder.is_finished and feeder.winner is not None:
            _fill_slot_if_empty(match, child_position, feeder.winner)
    _promote_bye(index, match)


def _propagate(index: Dict[Tuple[int, int], Match], total_rounds: int, match: Match):
    """
    Carry a finished match's winner into its parent.

    The sibling feeder is settled first so that a bye winner sitting next to
    this match also reaches the parent. If the parent turns into a bye, its
    winner moves up in turn.
    """
    while match.round < total_rounds:
        parent = _parent_of(index, match)
        if parent is None:
            break

        _set_slot(parent, match.position, match.winner)

        sibling = index.get((match.round, match.position ^ 1))
        if sibling is not None:
            _settle(index, sibling)
            if sibling.is_finished and sibling.winner is not None:
                _fill_slot_if_empty(parent, sibling.position, sibling.winner)

        if not _promote_bye(index, parent):
            break
        match = parent


def _invalidate_chain(index: Dict[Tuple[int, int], Match], match: Match):
    """
    Reset a finished match and every finished match after it on the way to the
    final, clearing the slot each one had filled in the next round. Stops at
    the first unfinished match.
    """
    while match is not None and match.is_finished:
        match.winner = None
        match.is_finished = False
        match.is_bye = False
        logger.debug("Invalidated %s (round %d)", match.id, match.round)

        parent = _parent_of(index, match)
        if parent is None:
            break
        _set_slot(parent, match.position, None)
        match = parent


def _update_completion(tournament: Tournament, index: Dict[Tuple[int, int], Match]):
    final_match = index.get((tournament.total_rounds, 0))
    tournament.is_complete = bool(final_match is not None and final_match.is_finished)
    tournament.winner = final_match.winner if tournament.is_complete else None


def advance_winner(tournament: Tournament, match_id: str, winner: Contestant) -> Tournament:
    """
    Record a winner and move them into the next round.

    An unknown match id returns the tournament unchanged. The winner is not
    checked against the match's contestants.
    """
    if match_id not in tournament.matches:
        return tournament

    updated = tournament.copy()
    index = _index_matches(updated)
    match = updated.matches[match_id]

    match.winner = winner
    match.is_finished = True
    _propagate(index, updated.total_rounds, match)
    _update_completion(updated, index)

    logger.debug("Advanced %s from %s", getattr(winner, 'name', winner), match_id)
    return updated


def change_match_winner(tournament: Tournament, match_id: str, new_winner: Contestant) -> Tournament:
    """
    Change the recorded winner of a match and reset everything that depended on it.

    Returns the tournament unchanged when the match does not exist, when
    new_winner is not one of its contestants, or when it already won. On a
    match with no result yet this is the same as advance_winner: the match
    becomes finished and the new winner moves into the next round.

    Only the chain of matches from the changed match to the final is touched.
    """
    match = tournament.matches.get(match_id)
    if match is None:
        return tournament
    if not match.has_contestant(new_winner):
        return tournament
    if match.winner is not None and match.winner.id == new_winner.id:
        return tournament
    if not match.is_finished:
        return advance_winner(tournament, match_id, new_winner)

    updated = tournament.copy()
    index = _index_matches(updated)
    match = updated.matches[match_id]
    match.winner = new_winner

    parent = _parent_of(index, match)
    if parent is not None:
        if parent.is_finished:
            _invalidate_chain(index, parent)
        _propagate(index, updated.total_rounds, match)

    _update_completion(updated, index)

    logger.debug("Changed winner of %s to %s", match_id, new_winner.name)
    return updated


def update_match_report(tournament: Tournament, match_id: str, report: Optional[str]) -> Tournament:
    """Attach a free-text report to a match. Blank text removes the report."""
    if match_id not in tournament.matches:
        return tournament
    updated = tournament.copy()
    updated.matches[match_id].report = (report or '').strip() or None
    return updated


def get_matches_by_round(tournament: Tournament, round_number: int) -> List[Match]:
    """All matches of a round, in creation order."""
    return [m for m in tournament.matches.values() if m.round == round_number]


def get_active_matches(tournament: Tournament) -> List[Match]:
    """Matches waiting for a decision: both slots filled, not finished, not a bye."""
    return [m for m in tournament.matches.values() if m.is_ready and not m.is_bye]


def get_current_round(tournament: Tournament) -> int:
    """Lowest round with a match waiting for a decision, else the final round."""
    rounds = [m.round for m in get_active_matches(tournament)]
    return min(rounds) if rounds else tournament.total_rounds
