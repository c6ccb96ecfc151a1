from typing import List

from fastapi import APIRouter, Depends, Response

from tripsplit.db.database import get_store
from tripsplit.db.interface import GroupStore
from tripsplit.schemas.expense_schema import Expense, ExpenseCreate, ExpenseUpdate
from tripsplit.services.expense_service import (
    create_expense, delete_expense, get_group_expenses, require_expense, update_expense
)
from tripsplit.services.group_service import require_group

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("/groups/{group_id}", response_model=Expense, status_code=201)
def create_new_expense(
    group_id: str,
    expense_data: ExpenseCreate,
    store: GroupStore = Depends(get_store)
):
    """Add an expense to a group; the group's settlements are recomputed"""
    return create_expense(store, group_id, expense_data)


@router.get("/groups/{group_id}", response_model=List[Expense])
def get_group_expenses_list(
    group_id: str,
    store: GroupStore = Depends(get_store)
):
    """Get all expenses for a group"""
    require_group(store, group_id)
    return get_group_expenses(store, group_id)


@router.get("/{expense_id}", response_model=Expense)
def get_expense_detail(
    expense_id: str,
    store: GroupStore = Depends(get_store)
):
    """Get expense details"""
    return require_expense(store, expense_id)


@router.patch("/{expense_id}", response_model=Expense)
def update_expense_detail(
    expense_id: str,
    update_data: ExpenseUpdate,
    store: GroupStore = Depends(get_store)
):
    """Edit an expense; the group's settlements are recomputed"""
    return update_expense(store, expense_id, update_data)


@router.delete("/{expense_id}", status_code=204)
def delete_expense_endpoint(
    expense_id: str,
    store: GroupStore = Depends(get_store)
):
    """Delete an expense; the group's settlements are recomputed"""
    delete_expense(store, expense_id)
    return Response(status_code=204)
