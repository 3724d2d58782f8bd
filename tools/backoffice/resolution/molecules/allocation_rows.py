"""
Allocation Rows Molecule - Pure edits on a list of ResolutionAllocation

Every function returns a new list and leaves its input untouched, so the
owner of the rows (a ResolutionSession) just swaps its reference.

Part of Layer 2: Molecules
"""

import logging
from typing import Any, List, Sequence

from tools.backoffice.resolution.atoms.currency import parse_amount, round2
from tools.backoffice.resolution.atoms.schemas import BankAccount, ResolutionAllocation

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('bank_account_id', 'amount', 'notes')


def new_allocation() -> ResolutionAllocation:
    return ResolutionAllocation(bank_account_id=0, amount=0.0, notes='')


def initial_allocations() -> List[ResolutionAllocation]:
    """Rows a freshly opened resolution starts with: one empty row."""
    return [new_allocation()]


def add_allocation(rows: Sequence[ResolutionAllocation]) -> List[ResolutionAllocation]:
    return [*rows, new_allocation()]


def remove_allocation(rows: Sequence[ResolutionAllocation], index: int) -> List[ResolutionAllocation]:
    """Remove row at index. The last remaining row cannot be removed."""
    if len(rows) <= 1:
        return list(rows)
    if not 0 <= index < len(rows):
        raise IndexError(f"No allocation at index {index}")
    return [row for i, row in enumerate(rows) if i != index]


def _coerce(field: str, value: Any) -> Any:
    if field == 'amount':
        return parse_amount(value)
    if field == 'bank_account_id':
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0
    if field == 'notes':
        return '' if value is None else str(value)
    raise ValueError(f"Unknown allocation field: {field}. Must be one of {EDITABLE_FIELDS}")


def update_allocation(
    rows: Sequence[ResolutionAllocation],
    index: int,
    field: str,
    value: Any
) -> List[ResolutionAllocation]:
    """
    Replace one field of one row.

    Values are coerced the way form inputs are read: amounts parse to
    float (blank or garbage becomes 0), account ids to int (0 when unset).

    Raises:
        ValueError: Unknown field
        IndexError: No row at index
    """
    coerced = _coerce(field, value)
    if not 0 <= index < len(rows):
        raise IndexError(f"No allocation at index {index}")

    updated = list(rows)
    updated[index] = rows[index].model_copy(update={field: coerced})
    return updated


def auto_fill(rows: Sequence[ResolutionAllocation], pending_amount: Any) -> List[ResolutionAllocation]:
    """
    Put the whole rounded pending amount on the only row.

    Applies only when exactly one row exists and it already has a bank
    account; with several rows there is no obvious split.
    """
    if len(rows) != 1 or rows[0].bank_account_id <= 0:
        return list(rows)
    return update_allocation(rows, 0, 'amount', round2(parse_amount(pending_amount)))


def can_auto_fill(rows: Sequence[ResolutionAllocation]) -> bool:
    return len(rows) == 1 and rows[0].bank_account_id > 0


def max_allocation_amount(pending_amount: Any) -> float:
    """Per-row input ceiling. Input affordance only, not a validity rule."""
    return round2(parse_amount(pending_amount))


def clamp_amount(amount: Any, pending_amount: Any) -> float:
    return min(parse_amount(amount), max_allocation_amount(pending_amount))


def active_bank_accounts(accounts: Sequence[BankAccount]) -> List[BankAccount]:
    """Accounts that may receive an allocation."""
    return [account for account in accounts if account.is_active]
