"""
Single-elimination bracket seeding for up to 16 entrants.

The bracket skeleton is fixed: 8 first-round, 4 second-round and 2
third-round (semifinal) matches, the final and the third-place match. All of
them are always built so a printed sheet can be filled in by hand.

Rounds (MAX_ROUNDS = 4):
  round 1: 16 slots   round 2: 8 slots   round 3: 4 slots   round 4: 2 slots

Placement:
  start round  = round with slots >= N and next-round slots < N
  numCompeting = 2 * (N - slots in next round)
  numByes      = N - numCompeting

The best-ranked entrants take the byes and fill the top of the bye round;
start-round entrants fill the bottom of the start round. A power-of-two
field plays entirely in its start round.

Numbering runs top to bottom per round starting at the first match with an
entrant; earlier empty matches stay unnumbered. The third-place match is
numbered just before the final.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ringside.models.tournament_state import Competitor

logger = logging.getLogger(__name__)

MAX_ROUNDS = 4
MAX_ENTRANTS = 2**MAX_ROUNDS
FINAL_ROUND = MAX_ROUNDS

# Position of the final and third-place match within round 4
FINAL_POSITION = 0
THIRD_PLACE_POSITION = 1


class BracketSizeError(ValueError):
    """More entrants than the bracket supports."""

    def __init__(self, count: int):
        super().__init__(f"Bracket supports at most {MAX_ENTRANTS} entrants, got {count}")
        self.count = count


@dataclass
class BracketPlacement:
    round: int
    position: int
    competitor_id: str


@dataclass
class BracketLayout:
    start_round: int
    bye_round: int
    num_competing: int
    num_byes: int
    placements: List[BracketPlacement] = field(default_factory=list)

    @property
    def has_byes(self) -> bool:
        return self.num_byes > 0


@dataclass
class BracketMatch:
    round: int
    position: int
    number: Optional[int] = None
    competitor_a: Optional[str] = None
    competitor_b: Optional[str] = None
    feeds_into: Optional[int] = None
    loser_feeds_into: Optional[int] = None
    is_third_place: bool = False

    @property
    def is_empty(self) -> bool:
        return self.competitor_a is None and self.competitor_b is None


@dataclass
class Bracket:
    entrant_count: int
    layout: BracketLayout
    matches: List[BracketMatch]

    @property
    def final(self) -> BracketMatch:
        return self.matches[-2]

    @property
    def third_place(self) -> BracketMatch:
        return self.matches[-1]

    def round_matches(self, round_number: int) -> List[BracketMatch]:
        return [m for m in self.matches if m.round == round_number and not m.is_third_place]

    def match_by_number(self, number: int) -> Optional[BracketMatch]:
        for match in self.matches:
            if match.number == number:
                return match
        return None


def slots_in_round(round_number: int, max_rounds: int = MAX_ROUNDS) -> int:
    """Entrant slots in a round: 16, 8, 4, 2 for rounds 1..4."""
    return 2 ** (max_rounds - round_number + 1)


def _entrant_ids(entrants: Sequence[Union[Competitor, str]]) -> List[str]:
    return [e if isinstance(e, str) else e.id for e in entrants]


def calculate_placements(entrant_ids: Sequence[str], max_rounds: int = MAX_ROUNDS) -> BracketLayout:
    """Place ordered entrants into (round, position) slots."""
    total = len(entrant_ids)
    if total > 2**max_rounds:
        raise BracketSizeError(total)

    if total == 0:
        return BracketLayout(start_round=0, bye_round=0, num_competing=0, num_byes=0)

    if total == 1:
        # Lone entrant sits in the final unopposed
        return BracketLayout(
            start_round=max_rounds,
            bye_round=max_rounds,
            num_competing=1,
            num_byes=0,
            placements=[BracketPlacement(round=max_rounds, position=0, competitor_id=entrant_ids[0])],
        )

    start_round = bye_round = 0
    num_competing = num_byes = 0
    for round_number in range(1, max_rounds + 1):
        slots = slots_in_round(round_number, max_rounds)
        next_slots = slots_in_round(round_number + 1, max_rounds)

        if total == slots:
            start_round = bye_round = round_number
            num_competing = total
            num_byes = 0
            break
        if next_slots < total < slots:
            start_round = round_number
            bye_round = round_number + 1
            num_competing = 2 * (total - next_slots)
            num_byes = total - num_competing
            break

    start_slots = slots_in_round(start_round, max_rounds)
    placements = []
    for index, competitor_id in enumerate(entrant_ids):
        if index < num_byes:
            placements.append(BracketPlacement(round=bye_round, position=index, competitor_id=competitor_id))
        else:
            position = (index - num_byes) + (start_slots - num_competing)
            placements.append(BracketPlacement(round=start_round, position=position, competitor_id=competitor_id))

    logger.debug(
        "Bracket layout for %d entrants: start round %d, %d competing, %d byes into round %d",
        total,
        start_round,
        num_competing,
        num_byes,
        bye_round,
    )
    return BracketLayout(
        start_round=start_round,
        bye_round=bye_round,
        num_competing=num_competing,
        num_byes=num_byes,
        placements=placements,
    )


def seed_bracket(entrants: Sequence[Union[Competitor, str]]) -> Bracket:
    """Build the full 16-match bracket for an ordered entrant list (best first).

    Raises:
        BracketSizeError: more than 16 entrants. Nothing is truncated.
    """
    entrant_ids = _entrant_ids(entrants)
    layout = calculate_placements(entrant_ids)

    by_slot: Dict[Tuple[int, int], str] = {(p.round, p.position): p.competitor_id for p in layout.placements}

    matches: List[BracketMatch] = []
    for round_number in range(1, FINAL_ROUND):
        match_count = slots_in_round(round_number) // 2
        for i in range(match_count):
            matches.append(
                BracketMatch(
                    round=round_number,
                    position=i * 2,
                    competitor_a=by_slot.get((round_number, i * 2)),
                    competitor_b=by_slot.get((round_number, i * 2 + 1)),
                )
            )

    final = BracketMatch(
        round=FINAL_ROUND,
        position=FINAL_POSITION,
        competitor_a=by_slot.get((FINAL_ROUND, 0)),
        competitor_b=by_slot.get((FINAL_ROUND, 1)),
    )
    third_place = BracketMatch(round=FINAL_ROUND, position=THIRD_PLACE_POSITION, is_third_place=True)
    matches.extend([final, third_place])

    if entrant_ids:
        _number_matches(matches, final, third_place)
    _link_matches(matches, final, third_place)

    return Bracket(entrant_count=len(entrant_ids), layout=layout, matches=matches)


def _number_matches(matches: List[BracketMatch], final: BracketMatch, third_place: BracketMatch) -> None:
    number = 1
    started = False
    for match in matches:
        if match.round >= FINAL_ROUND:
            continue
        if not started and not match.is_empty:
            started = True
        if started:
            match.number = number
            number += 1

    third_place.number = number
    final.number = number + 1


def _link_matches(matches: List[BracketMatch], final: BracketMatch, third_place: BracketMatch) -> None:
    by_round: Dict[int, List[BracketMatch]] = {}
    for match in matches:
        if not match.is_third_place:
            by_round.setdefault(match.round, []).append(match)

    for round_number in range(1, FINAL_ROUND):
        next_round = by_round[round_number + 1]
        for i, match in enumerate(by_round[round_number]):
            match.feeds_into = next_round[i // 2].number

    for semifinal in by_round[FINAL_ROUND - 1]:
        semifinal.loser_feeds_into = third_place.number


def bye_competitor_ids(bracket: Bracket) -> List[str]:
    """Entrants that skip the start round, best-ranked first."""
    layout = bracket.layout
    return [p.competitor_id for p in layout.placements if layout.has_byes and p.round == layout.bye_round]
