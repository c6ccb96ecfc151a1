from typing import List

from fastapi import APIRouter, Depends

from tripsplit.db.database import get_store
from tripsplit.db.interface import GroupStore
from tripsplit.schemas.settlement_schema import (
    BalanceMatchRequest, BalanceOut, Settlement, SettlementComputeRequest,
    SettlementComputeResponse, SettlementExplanation, SettlementMark
)
from tripsplit.services.group_service import require_group
from tripsplit.services.settlement_service import (
    compute_snapshot, explain_group_settlements, get_group_balances,
    get_group_settlements, mark_settlement, match_balances, resettle_group
)

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/compute", response_model=SettlementComputeResponse)
def compute_settlements_for_snapshot(request: SettlementComputeRequest):
    """Balances and settlements for posted members and expenses, nothing is stored"""
    return compute_snapshot(request)


@router.post("/match", response_model=List[Settlement])
def match_posted_balances(request: BalanceMatchRequest):
    """Settlements for posted balances, which must sum to zero"""
    return match_balances(request.balances)


@router.get("/groups/{group_id}", response_model=List[Settlement])
def get_group_settlements_list(
    group_id: str,
    store: GroupStore = Depends(get_store)
):
    """Get the stored settlements for a group"""
    return get_group_settlements(store, group_id)


@router.get("/groups/{group_id}/balances", response_model=List[BalanceOut])
def get_group_balance_list(
    group_id: str,
    store: GroupStore = Depends(get_store)
):
    """Get the net balance of every group member"""
    return get_group_balances(store, group_id)


@router.post("/groups/{group_id}/recompute", response_model=List[Settlement])
def recompute_group_settlements(
    group_id: str,
    store: GroupStore = Depends(get_store)
):
    """Recompute and replace the group's settlements"""
    require_group(store, group_id)
    return resettle_group(store, group_id)


@router.get("/groups/{group_id}/explain", response_model=SettlementExplanation)
def explain_settlements(
    group_id: str,
    store: GroupStore = Depends(get_store)
):
    """Run the matcher on current balances and return its step log"""
    return explain_group_settlements(store, group_id)


@router.post("/groups/{group_id}/{settlement_id}/mark", response_model=Settlement)
def mark_group_settlement(
    group_id: str,
    settlement_id: str,
    mark: SettlementMark,
    store: GroupStore = Depends(get_store)
):
    """Mark a settlement as paid, or clear the mark"""
    return mark_settlement(store, group_id, settlement_id, mark.is_settled)
