import logging
from typing import Iterable, List

from fastapi import HTTPException
from pydantic import ValidationError

from tripsplit.db.interface import GroupStore
from tripsplit.schemas.expense_schema import Expense, ExpenseCreate, ExpenseUpdate

logger = logging.getLogger(__name__)


def _validate_identities(store: GroupStore, group_id: str, payer: str, participants: Iterable[str]) -> None:
    """Payer and every participant must belong to the group"""
    from .group_service import get_group_members

    group_members = {member.user_id for member in get_group_members(store, group_id)}
    if payer not in group_members:
        raise HTTPException(status_code=400, detail=f"Payer {payer} is not a member of this group")
    for participant in participants:
        if participant not in group_members:
            raise HTTPException(status_code=400, detail=f"User {participant} is not a member of this group")


def create_expense(store: GroupStore, group_id: str, expense_data: ExpenseCreate) -> Expense:
    """Create a new expense and re-settle the group"""
    from .group_service import require_group
    from .settlement_service import resettle_group

    require_group(store, group_id)

    with store.group_lock(group_id):
        _validate_identities(store, group_id, expense_data.payer, expense_data.participants)

        expense = Expense(group_id=group_id, **expense_data.model_dump())
        store.add_expense(expense)
        logger.info(f"Added expense {expense.id} ({expense.amount}) to group {group_id}")
        resettle_group(store, group_id)

    return expense


def require_expense(store: GroupStore, expense_id: str) -> Expense:
    expense = store.get_expense(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


def get_group_expenses(store: GroupStore, group_id: str) -> List[Expense]:
    """Get all expenses for a group"""
    return store.get_expenses(group_id)


def update_expense(store: GroupStore, expense_id: str, update_data: ExpenseUpdate) -> Expense:
    """Edit an expense and re-settle the group"""
    from .settlement_service import resettle_group

    expense = require_expense(store, expense_id)

    with store.group_lock(expense.group_id):
        # Re-read under the lock so concurrent edits apply one after another
        expense = require_expense(store, expense_id)
        changes = update_data.model_dump(exclude_unset=True)

        # Frozen records are rebuilt, which also re-runs every validator
        try:
            updated = Expense.model_validate({**expense.model_dump(), **changes})
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

        _validate_identities(store, updated.group_id, updated.payer, updated.participants)

        store.update_expense(updated)
        logger.info(f"Updated expense {expense_id} in group {updated.group_id}: {sorted(changes)}")
        resettle_group(store, updated.group_id)

    return updated


def delete_expense(store: GroupStore, expense_id: str) -> None:
    """Delete an expense and re-settle the group"""
    from .settlement_service import resettle_group

    expense = require_expense(store, expense_id)

    with store.group_lock(expense.group_id):
        if not store.delete_expense(expense_id):
            raise HTTPException(status_code=404, detail="Expense not found")
        logger.info(f"Deleted expense {expense_id} from group {expense.group_id}")
        resettle_group(store, expense.group_id)
