"""
Abstract Storage Interface

The services never talk to a concrete backend. They receive a GroupStore and
only use the operations below, so an in-memory store, a document database or a
SQL backend can be swapped in without touching the settlement logic.
"""

from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional

from tripsplit.schemas.expense_schema import Expense
from tripsplit.schemas.group_schema import Group, GroupMember
from tripsplit.schemas.settlement_schema import Settlement


class GroupStore(ABC):
    """
    Storage operations for groups, their expenses and their settlements.

    Implementations must return copies, never live internal objects, so that a
    caller holding a result cannot change stored state behind the store's back.
    """

    @abstractmethod
    def add_group(self, group: Group) -> Group:
        """Save a new group and return it."""
        pass

    @abstractmethod
    def get_group(self, group_id: str) -> Optional[Group]:
        """Retrieve a group by its ID, None if it does not exist."""
        pass

    @abstractmethod
    def list_groups(self) -> List[Group]:
        pass

    @abstractmethod
    def add_member(self, group_id: str, member: GroupMember) -> Optional[Group]:
        """
        Append a member to a group.

        Returns:
            The updated group, None if the group does not exist
        """
        pass

    @abstractmethod
    def get_members(self, group_id: str) -> List[GroupMember]:
        pass

    @abstractmethod
    def add_expense(self, expense: Expense) -> Expense:
        """Save an expense under ``expense.group_id``."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: str) -> Optional[Expense]:
        pass

    @abstractmethod
    def update_expense(self, expense: Expense) -> Expense:
        """Replace the stored expense that has the same ID."""
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense by ID.

        Returns:
            True if an expense was removed
        """
        pass

    @abstractmethod
    def get_expenses(self, group_id: str) -> List[Expense]:
        """All expenses of a group in insertion order."""
        pass

    @abstractmethod
    def get_settlements(self, group_id: str) -> List[Settlement]:
        pass

    @abstractmethod
    def replace_settlements(self, group_id: str, settlements: List[Settlement]) -> List[Settlement]:
        """Drop every stored settlement of the group and store these instead."""
        pass

    @abstractmethod
    def update_settlement(self, group_id: str, settlement: Settlement) -> Optional[Settlement]:
        """
        Replace one stored settlement, matched by ID.

        Returns:
            The stored settlement, None if no settlement has that ID
        """
        pass

    @abstractmethod
    def group_lock(self, group_id: str) -> ContextManager:
        """
        Re-entrant lock serializing writes for one group.

        Every expense mutation and the recompute it triggers run under this
        lock, so a stale settlement set can never overwrite a fresher one.
        """
        pass
