from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ringside.models.tournament_state import Category, CompetitionType, Competitor
from ringside.services.bracket_seeding import Bracket, BracketSizeError, bye_competitor_ids, seed_bracket
from ringside.services.group_derivation import CompetitionGroup, derive_groups, split_sub_groups
from ringside.utils.ring_names import format_group_id, pool_number

router = APIRouter()


class SeedBracketRequest(BaseModel):
    entrant_ids: List[str]


class GroupBracketsRequest(BaseModel):
    competitors: List[Competitor]
    categories: List[Category]
    category_id: str
    pool: str = "P1"


class MatchResponse(BaseModel):
    number: Optional[int] = None
    round: int
    position: int
    competitor_a: Optional[str] = None
    competitor_b: Optional[str] = None
    feeds_into: Optional[int] = None
    loser_feeds_into: Optional[int] = None
    is_third_place: bool = False


class BracketResponse(BaseModel):
    label: str = ""
    group_id: Optional[str] = None
    entrant_count: int
    start_round: int
    bye_round: int
    num_competing: int
    num_byes: int
    bye_competitor_ids: List[str]
    matches: List[MatchResponse]


def _bracket_response(bracket: Bracket, label: str = "", group_id: Optional[str] = None) -> BracketResponse:
    layout = bracket.layout
    return BracketResponse(
        label=label,
        group_id=group_id,
        entrant_count=bracket.entrant_count,
        start_round=layout.start_round,
        bye_round=layout.bye_round,
        num_competing=layout.num_competing,
        num_byes=layout.num_byes,
        bye_competitor_ids=bye_competitor_ids(bracket),
        matches=[
            MatchResponse(
                number=m.number,
                round=m.round,
                position=m.position,
                competitor_a=m.competitor_a,
                competitor_b=m.competitor_b,
                feeds_into=m.feeds_into,
                loser_feeds_into=m.loser_feeds_into,
                is_third_place=m.is_third_place,
            )
            for m in bracket.matches
        ],
    )


def _seed_or_422(entrants) -> Bracket:
    try:
        return seed_bracket(entrants)
    except BracketSizeError as e:
        raise HTTPException(status_code=422, detail=f"UNSUPPORTED_BRACKET_SIZE: {e}")


@router.post("/brackets/seed", response_model=BracketResponse)
def seed_bracket_endpoint(request: SeedBracketRequest):
    """Seed a single-elimination bracket from an ordered entrant list (best first)"""
    return _bracket_response(_seed_or_422(request.entrant_ids))


@router.post("/brackets/group", response_model=List[BracketResponse])
def group_brackets_endpoint(request: GroupBracketsRequest):
    """Seed every bracket drawn for one sparring pool (one per populated sub-group when split)"""
    pool = pool_number(request.pool)
    groups = derive_groups(request.competitors, request.categories)
    group: Optional[CompetitionGroup] = next(
        (
            g
            for g in groups
            if g.type == CompetitionType.sparring and g.category_id == request.category_id and g.key.pool == pool
        ),
        None,
    )
    if group is None:
        raise HTTPException(status_code=404, detail="Sparring group not found")

    responses = []
    for entrants in split_sub_groups(request.competitors, group):
        bracket = _seed_or_422(entrants.competitors)
        group_id = format_group_id(group.display_name, group.type, entrants.key.sub_group)
        responses.append(_bracket_response(bracket, entrants.label, group_id))
    return responses
