from typing import List

from fastapi import APIRouter, Depends

from tripsplit.db.database import get_store
from tripsplit.db.interface import GroupStore
from tripsplit.schemas.group_schema import Group, GroupCreate, GroupMemberCreate
from tripsplit.services.group_service import add_group_member, create_group, list_groups, require_group

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=Group, status_code=201)
def create_new_group(
    group_data: GroupCreate,
    store: GroupStore = Depends(get_store)
):
    """Create a new group with its members"""
    return create_group(store, group_data)


@router.get("", response_model=List[Group])
def get_groups_list(store: GroupStore = Depends(get_store)):
    """Get all groups"""
    return list_groups(store)


@router.get("/{group_id}", response_model=Group)
def get_group_detail(
    group_id: str,
    store: GroupStore = Depends(get_store)
):
    """Get a group with its members"""
    return require_group(store, group_id)


@router.post("/{group_id}/members", response_model=Group, status_code=201)
def add_member_to_group(
    group_id: str,
    member_data: GroupMemberCreate,
    store: GroupStore = Depends(get_store)
):
    """Add a member to a group"""
    return add_group_member(store, group_id, member_data)
