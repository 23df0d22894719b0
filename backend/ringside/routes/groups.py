from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ringside.models.tournament_state import (
    Category,
    CategoryPoolMapping,
    CompetitionType,
    Competitor,
    PhysicalRingMapping,
    SubGroup,
)
from ringside.services.group_derivation import CompetitionGroup, derive_groups
from ringside.services.ring_ordering import order_forms_group, order_sparring_group

router = APIRouter()


class DeriveGroupsRequest(BaseModel):
    competitors: List[Competitor]
    categories: List[Category]
    category_pool_mappings: List[CategoryPoolMapping] = Field(default_factory=list)
    physical_ring_mappings: List[PhysicalRingMapping] = Field(default_factory=list)


class GroupResponse(BaseModel):
    group_id: str
    division: str
    display_name: str
    type: CompetitionType
    sub_group: Optional[str] = None
    category_id: str
    pool: str
    member_ids: List[str]
    physical_ring_id: Optional[str] = None


class OrderGroupRequest(BaseModel):
    competitors: List[Competitor]
    type: CompetitionType
    category_id: str
    pool: str = "P1"
    sub_group: Optional[SubGroup] = None


def _group_response(group: CompetitionGroup) -> GroupResponse:
    return GroupResponse(
        group_id=group.group_id,
        division=group.division,
        display_name=group.display_name,
        type=group.type,
        sub_group=group.sub_group,
        category_id=group.category_id,
        pool=group.pool,
        member_ids=group.member_ids,
        physical_ring_id=group.physical_ring_id,
    )


@router.post("/groups/derive", response_model=List[GroupResponse])
def derive_groups_endpoint(request: DeriveGroupsRequest):
    """Compute all non-empty competition groups from competitor assignments"""
    groups = derive_groups(
        request.competitors,
        request.categories,
        request.category_pool_mappings,
        request.physical_ring_mappings,
    )
    return [_group_response(g) for g in groups]


@router.post("/groups/order", response_model=List[Competitor])
def order_group_endpoint(request: OrderGroupRequest):
    """Assign ranks 1..N within one group; other competitors are returned unchanged"""
    if request.type == CompetitionType.forms:
        return order_forms_group(request.competitors, request.category_id, request.pool)
    return order_sparring_group(request.competitors, request.category_id, request.pool, request.sub_group or None)
