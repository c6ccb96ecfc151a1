import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Largest single expense accepted, in the group currency
MAX_EXPENSE_AMOUNT = Decimal("9999999999.99")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExpenseCategory(str, Enum):
    accommodation = "Accommodation"
    food = "Food & Drinks"
    transportation = "Transportation"
    activities = "Activities"
    shopping = "Shopping"
    other = "Other"


def _clean_participants(participants: List[str]) -> List[str]:
    """Strip identities and drop repeats, keeping first-seen order."""
    cleaned: List[str] = []
    for participant in participants:
        participant = participant.strip()
        if not participant:
            raise ValueError("Participant identity cannot be blank")
        if participant not in cleaned:
            cleaned.append(participant)
    return cleaned


class ExpenseBase(BaseModel):
    payer: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, le=MAX_EXPENSE_AMOUNT, decimal_places=2)
    participants: List[str] = Field(..., min_length=1)
    description: str = Field("", max_length=200)
    category: ExpenseCategory = ExpenseCategory.other
    date: datetime = Field(default_factory=utcnow)
    activity_id: Optional[str] = None

    @field_validator("payer")
    @classmethod
    def validate_payer(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Payer identity cannot be blank")
        return v

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, v: List[str]) -> List[str]:
        return _clean_participants(v)


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    payer: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0, le=MAX_EXPENSE_AMOUNT, decimal_places=2)
    participants: Optional[List[str]] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=200)
    category: Optional[ExpenseCategory] = None
    date: Optional[datetime] = None
    activity_id: Optional[str] = None

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return _clean_participants(v)


class Expense(ExpenseBase):
    """An immutable shared cost, split equally among its participants."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    group_id: Optional[str] = None
