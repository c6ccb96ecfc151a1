import logging
import threading
from typing import Dict, List, Optional

from tripsplit.db.interface import GroupStore
from tripsplit.schemas.expense_schema import Expense
from tripsplit.schemas.group_schema import Group, GroupMember
from tripsplit.schemas.settlement_schema import Settlement

logger = logging.getLogger(__name__)


class InMemoryGroupStore(GroupStore):
    """Dictionary-backed GroupStore. State lives as long as the process."""

    def __init__(self):
        self._groups: Dict[str, Group] = {}
        self._expenses: Dict[str, Dict[str, Expense]] = {}
        self._expense_groups: Dict[str, str] = {}
        self._settlements: Dict[str, List[Settlement]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def add_group(self, group: Group) -> Group:
        with self._guard:
            self._groups[group.id] = group.model_copy(deep=True)
            self._expenses.setdefault(group.id, {})
            self._settlements.setdefault(group.id, [])
        logger.debug(f"Stored group {group.id}")
        return group.model_copy(deep=True)

    def get_group(self, group_id: str) -> Optional[Group]:
        group = self._groups.get(group_id)
        return group.model_copy(deep=True) if group else None

    def list_groups(self) -> List[Group]:
        return [group.model_copy(deep=True) for group in self._groups.values()]

    def add_member(self, group_id: str, member: GroupMember) -> Optional[Group]:
        with self._guard:
            group = self._groups.get(group_id)
            if group is None:
                return None
            group = group.model_copy(update={"members": group.members + [member]}, deep=True)
            self._groups[group_id] = group
        return group.model_copy(deep=True)

    def get_members(self, group_id: str) -> List[GroupMember]:
        group = self._groups.get(group_id)
        if group is None:
            return []
        return [member.model_copy() for member in group.members]

    def add_expense(self, expense: Expense) -> Expense:
        with self._guard:
            self._expenses.setdefault(expense.group_id, {})[expense.id] = expense
            self._expense_groups[expense.id] = expense.group_id
        return expense

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        group_id = self._expense_groups.get(expense_id)
        if group_id is None:
            return None
        return self._expenses[group_id].get(expense_id)

    def update_expense(self, expense: Expense) -> Expense:
        # Expense is frozen, so handing out the stored instance is safe
        with self._guard:
            self._expenses[expense.group_id][expense.id] = expense
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        with self._guard:
            group_id = self._expense_groups.pop(expense_id, None)
            if group_id is None:
                return False
            del self._expenses[group_id][expense_id]
        return True

    def get_expenses(self, group_id: str) -> List[Expense]:
        return list(self._expenses.get(group_id, {}).values())

    def get_settlements(self, group_id: str) -> List[Settlement]:
        return [settlement.model_copy() for settlement in self._settlements.get(group_id, [])]

    def replace_settlements(self, group_id: str, settlements: List[Settlement]) -> List[Settlement]:
        stored = [settlement.model_copy() for settlement in settlements]
        with self._guard:
            self._settlements[group_id] = stored
        return [settlement.model_copy() for settlement in stored]

    def update_settlement(self, group_id: str, settlement: Settlement) -> Optional[Settlement]:
        with self._guard:
            stored = self._settlements.get(group_id, [])
            for index, existing in enumerate(stored):
                if existing.id == settlement.id:
                    stored[index] = settlement.model_copy()
                    return settlement.model_copy()
        return None

    def group_lock(self, group_id: str) -> threading.RLock:
        with self._guard:
            return self._locks.setdefault(group_id, threading.RLock())
