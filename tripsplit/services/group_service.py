import logging
from typing import List

from fastapi import HTTPException

from tripsplit.db.interface import GroupStore
from tripsplit.schemas.group_schema import Group, GroupCreate, GroupMember, GroupMemberCreate

logger = logging.getLogger(__name__)


def create_group(store: GroupStore, group_data: GroupCreate) -> Group:
    """Create a new group with its initial members"""
    group = Group(name=group_data.name, members=group_data.members)
    group = store.add_group(group)
    logger.info(f"Created group {group.id} with {len(group.members)} members")
    return group


def list_groups(store: GroupStore) -> List[Group]:
    """Get all groups"""
    return store.list_groups()


def require_group(store: GroupStore, group_id: str) -> Group:
    """Get a group by ID or fail with 404"""
    group = store.get_group(group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


def get_group_members(store: GroupStore, group_id: str) -> List[GroupMember]:
    """Get all members of a group"""
    return store.get_members(group_id)


def is_group_member(store: GroupStore, group_id: str, user_id: str) -> bool:
    """Check if a user is a member of the group"""
    return any(member.user_id == user_id for member in store.get_members(group_id))


def add_group_member(store: GroupStore, group_id: str, member_data: GroupMemberCreate) -> Group:
    """Add a member to a group and refresh the group's settlements"""
    from .settlement_service import resettle_group

    require_group(store, group_id)

    with store.group_lock(group_id):
        if is_group_member(store, group_id, member_data.user_id):
            raise HTTPException(status_code=409, detail="User is already a member of this group")

        member = GroupMember(user_id=member_data.user_id, is_owner=member_data.is_owner)
        group = store.add_member(group_id, member)
        logger.info(f"Added member {member.user_id} to group {group_id}")
        resettle_group(store, group_id)

    return group
