import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List

from fastapi import HTTPException

from tripsplit.config import SettledFlagPolicy, get_settings
from tripsplit.db.interface import GroupStore
from tripsplit.schemas.settlement_schema import (
    BalanceOut, Settlement, SettlementComputeRequest, SettlementComputeResponse,
    SettlementExplanation
)
from tripsplit.utils.settlement_engine import (
    compute_balances, compute_settlements, compute_settlements_detailed,
    validate_balance_sum
)

logger = logging.getLogger(__name__)


def sort_balances(balances: Dict[str, Decimal]) -> List[BalanceOut]:
    """Largest absolute balance first, ties by user ID"""
    return [
        BalanceOut(user_id=user_id, amount=amount)
        for user_id, amount in sorted(balances.items(), key=lambda item: (-abs(item[1]), item[0]))
    ]


def compute_group_balances(store: GroupStore, group_id: str) -> Dict[str, Decimal]:
    """
    Calculate balances from the group's full expense list.

    Balances are never patched incrementally; every call starts from the
    current snapshot of members and expenses.
    """
    members = [member.user_id for member in store.get_members(group_id)]
    balances = compute_balances(store.get_expenses(group_id), members)

    drift = sum(balances.values(), Decimal("0"))
    if abs(drift) > get_settings().settlement_epsilon:
        logger.warning(f"Balances of group {group_id} do not sum to zero: drift={drift}")

    return balances


def get_group_balances(store: GroupStore, group_id: str) -> List[BalanceOut]:
    """Get the balance listing for all group members"""
    from .group_service import require_group

    require_group(store, group_id)
    return sort_balances(compute_group_balances(store, group_id))


def _assign_identity(previous: List[Settlement], fresh: List[Settlement]) -> List[Settlement]:
    """
    Give freshly computed settlements their store identity.

    Under the carry_forward policy a settlement that matches a previous one on
    (from, to, amount) keeps its ID and its paid mark. Anything else is new.
    """
    carry_forward = get_settings().settled_flag_policy == SettledFlagPolicy.carry_forward
    previous_by_key = {settlement.match_key: settlement for settlement in previous}

    result = []
    for settlement in fresh:
        prior = previous_by_key.get(settlement.match_key) if carry_forward else None
        if prior is not None:
            result.append(settlement.model_copy(update={
                "id": prior.id,
                "is_settled": prior.is_settled,
                "settled_at": prior.settled_at
            }))
        else:
            result.append(settlement.model_copy(update={"id": str(uuid.uuid4())}))
    return result


def resettle_group(store: GroupStore, group_id: str) -> List[Settlement]:
    """
    Recompute a group's settlements from scratch and replace the stored set.

    Called after every expense mutation. Runs under the group lock so that the
    read-compute-replace sequence is never interleaved with another mutation.
    """
    settings = get_settings()

    with store.group_lock(group_id):
        balances = compute_group_balances(store, group_id)
        fresh = compute_settlements(balances, tolerance=settings.settlement_epsilon)
        settlements = _assign_identity(store.get_settlements(group_id), fresh)
        stored = store.replace_settlements(group_id, settlements)

    logger.info(f"Re-settled group {group_id}: {len(stored)} settlements")
    return stored


def get_group_settlements(store: GroupStore, group_id: str) -> List[Settlement]:
    """Get all stored settlements for a group"""
    from .group_service import require_group

    require_group(store, group_id)
    return store.get_settlements(group_id)


def mark_settlement(store: GroupStore, group_id: str, settlement_id: str, is_settled: bool = True) -> Settlement:
    """Mark a settlement as paid, or clear the mark"""
    from .group_service import require_group

    require_group(store, group_id)

    with store.group_lock(group_id):
        settlement = next(
            (s for s in store.get_settlements(group_id) if s.id == settlement_id),
            None
        )
        if settlement is None:
            raise HTTPException(status_code=404, detail="Settlement not found")

        settlement = settlement.model_copy(update={
            "is_settled": is_settled,
            "settled_at": datetime.now(timezone.utc) if is_settled else None
        })
        store.update_settlement(group_id, settlement)

    logger.info(f"Settlement {settlement_id} in group {group_id} marked is_settled={is_settled}")
    return settlement


def explain_group_settlements(store: GroupStore, group_id: str) -> SettlementExplanation:
    """Run the matcher on the group's current balances and keep its step log"""
    from .group_service import require_group

    require_group(store, group_id)
    balances = compute_group_balances(store, group_id)
    settlements, steps = compute_settlements_detailed(balances, tolerance=get_settings().settlement_epsilon)
    return SettlementExplanation(balances=sort_balances(balances), settlements=settlements, steps=steps)


def compute_snapshot(request: SettlementComputeRequest) -> SettlementComputeResponse:
    """Balances and settlements for a posted snapshot; nothing is stored"""
    balances = compute_balances(request.expenses, request.members)
    settlements = compute_settlements(balances, tolerance=get_settings().settlement_epsilon)
    return SettlementComputeResponse(balances=sort_balances(balances), settlements=settlements)


def match_balances(balances: Dict[str, Decimal]) -> List[Settlement]:
    """Settlements for caller-supplied balances, which must sum to zero"""
    tolerance = get_settings().settlement_epsilon
    try:
        validate_balance_sum(balances, tolerance)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return compute_settlements(balances, tolerance=tolerance)
