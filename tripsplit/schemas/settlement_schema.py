from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from tripsplit.config import get_settings
from tripsplit.schemas.expense_schema import Expense
from tripsplit.utils.money import quantize


def quantize_money(value: Decimal) -> str:
    """Render a Decimal amount at the configured money precision."""
    return str(quantize(value, get_settings().money_precision))


class Settlement(BaseModel):
    """
    One suggested payment from a debtor to a creditor.

    Serialized with the keys ``from`` and ``to``. ``id``, ``is_settled`` and
    ``settled_at`` belong to the store; raw engine output leaves them unset.
    """
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: Optional[str] = None
    from_user: str = Field(..., alias="from")
    to_user: str = Field(..., alias="to")
    amount: Decimal = Field(..., gt=0)
    is_settled: bool = False
    settled_at: Optional[datetime] = None

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> str:
        return quantize_money(amount)

    @property
    def match_key(self) -> Tuple[str, str, Decimal]:
        """Key used to recognise the same debt across regenerations."""
        return self.from_user, self.to_user, quantize(self.amount, get_settings().money_precision)


class BalanceOut(BaseModel):
    user_id: str
    amount: Decimal

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> str:
        return quantize_money(amount)


class SettlementMark(BaseModel):
    is_settled: bool = True


class SettlementComputeRequest(BaseModel):
    members: List[str] = []
    expenses: List[Expense] = []


class SettlementComputeResponse(BaseModel):
    balances: List[BalanceOut]
    settlements: List[Settlement]


class BalanceMatchRequest(BaseModel):
    balances: Dict[str, Decimal]


class SettlementExplanation(BaseModel):
    balances: List[BalanceOut]
    settlements: List[Settlement]
    steps: List[str]
