"""Schema atom - pydantic shapes for back-office API payloads

Currency fields accept numbers or decimal strings and are normalized with
parse_amount(). Unknown fields from the backend are ignored.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tools.backoffice.resolution.atoms.currency import parse_amount

ResolutionType = Literal['safedrops', 'cash_in_hand']
RESOLUTION_TYPES = ('safedrops', 'cash_in_hand')
TYPE_LABELS = {
    'safedrops': 'Safedrops',
    'cash_in_hand': 'Cash in Hand',
}


class _APIModel(BaseModel):
    model_config = ConfigDict(extra='ignore')


class UserRef(_APIModel):
    """Embedded user reference (only the name is displayed)."""

    id: Optional[int] = None
    name: Optional[str] = None


class User(_APIModel):
    """Authenticated user profile."""

    id: int
    name: str
    email: Optional[str] = None
    role: Optional[str] = None


class PendingAmounts(_APIModel):
    """Totals for one cash type on one day."""

    total_amount: float = 0.0
    resolved_amount: float = 0.0
    pending_amount: float = 0.0

    @field_validator('total_amount', 'resolved_amount', 'pending_amount', mode='before')
    @classmethod
    def _parse_currency(cls, value):
        return parse_amount(value)


class PendingItem(_APIModel):
    """A daily sale with safedrop or cash-in-hand money not yet allocated."""

    id: int
    date: str
    user: Optional[UserRef] = None
    safedrops: PendingAmounts = Field(default_factory=PendingAmounts)
    cash_in_hand: PendingAmounts = Field(default_factory=PendingAmounts)

    def pending_for(self, resolution_type: str) -> float:
        """Pending amount for 'safedrops' or 'cash_in_hand'."""
        if resolution_type == 'safedrops':
            return self.safedrops.pending_amount
        if resolution_type == 'cash_in_hand':
            return self.cash_in_hand.pending_amount
        raise ValueError(f"Invalid resolution type: {resolution_type}")

    @property
    def user_name(self) -> str:
        return self.user.name if self.user and self.user.name else 'N/A'


class BankAccount(_APIModel):
    """Partial bank account view used for allocation targets."""

    id: int
    account_name: str
    account_type: Optional[str] = None
    balance: float = 0.0
    is_active: bool = True

    @field_validator('balance', mode='before')
    @classmethod
    def _parse_balance(cls, value):
        return parse_amount(value)


class ResolutionAllocation(BaseModel):
    """One row of a resolution: amount routed to one bank account."""

    bank_account_id: int = 0
    amount: float = 0.0
    notes: Optional[str] = ''

    @field_validator('amount', mode='before')
    @classmethod
    def _parse_amount(cls, value):
        return parse_amount(value)

    @field_validator('bank_account_id', mode='before')
    @classmethod
    def _parse_account(cls, value):
        if value in (None, ''):
            return 0
        return value


class DailySaleRef(_APIModel):
    id: int
    date: Optional[str] = None


class BankAccountRef(_APIModel):
    id: Optional[int] = None
    account_name: Optional[str] = None


class SafedropResolution(_APIModel):
    """Resolution history record created by the backend."""

    id: int
    type: ResolutionType
    amount: float = 0.0
    bank_account: Optional[BankAccountRef] = None
    user: Optional[UserRef] = None
    created_at: Optional[str] = None
    daily_sale: Optional[DailySaleRef] = None

    @field_validator('amount', mode='before')
    @classmethod
    def _parse_amount(cls, value):
        return parse_amount(value)
