import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tripsplit.schemas.expense_schema import utcnow


class GroupMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(..., min_length=1)  # e-mail or any other stable identity
    is_owner: bool = False

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Member identity cannot be blank")
        return v


class GroupMemberCreate(GroupMember):
    pass


class GroupBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class GroupCreate(GroupBase):
    members: List[GroupMember] = Field(..., min_length=1)

    @field_validator("members")
    @classmethod
    def validate_unique_members(cls, v: List[GroupMember]) -> List[GroupMember]:
        user_ids = [member.user_id for member in v]
        if len(set(user_ids)) != len(user_ids):
            raise ValueError("Group members must be unique")
        return v


class Group(GroupBase):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    members: List[GroupMember] = []
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def member_ids(self) -> List[str]:
        return [member.user_id for member in self.members]
