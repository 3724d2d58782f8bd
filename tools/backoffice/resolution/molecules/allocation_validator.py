"""
Allocation Validator Molecule - Totals, remaining balance and validity

Given a day's pending amount and the rows a user has built, computes what
has been allocated, what is left, and whether the set may be submitted.

Part of Layer 2: Molecules

Public API:
    - summarize_allocations(pending_amount, allocations) -> AllocationSummary
    - is_valid_allocation(pending_amount, allocations) -> bool
    - remaining_status(remaining) -> 'over' | 'balanced' | 'pending'

Example:
    >>> rows = [
    ...     ResolutionAllocation(bank_account_id=1, amount=60),
    ...     ResolutionAllocation(bank_account_id=2, amount=40),
    ... ]
    >>> summary = summarize_allocations(100.00, rows)
    >>> summary['is_valid'], summary['remaining']
    (True, 0.0)

Two tolerances are in play. VALIDITY_EPSILON gates submission and is well
below one cent so that real over-allocation is never masked.
DISPLAY_EPSILON only decides whether the remaining balance is shown as
settled. Keep them separate.
"""

import logging
from typing import Any, List, Literal, Sequence, TypedDict

from tools.backoffice.resolution.atoms.currency import parse_amount, round2
from tools.backoffice.resolution.atoms.schemas import ResolutionAllocation

logger = logging.getLogger(__name__)

VALIDITY_EPSILON = 0.001
DISPLAY_EPSILON = 0.01

RemainingStatus = Literal['over', 'balanced', 'pending']


class AllocationSummary(TypedDict):
    """Derived state of an allocation set."""

    pending_amount: float
    total_allocated: float
    remaining: float
    is_valid: bool
    status: RemainingStatus
    exceeds_pending: bool
    errors: List[str]


def total_allocated(allocations: Sequence[ResolutionAllocation]) -> float:
    """Sum of row amounts, unrounded."""
    return sum((row.amount or 0) for row in allocations)


def remaining_status(remaining: float) -> RemainingStatus:
    """
    Classify the remaining balance for display.

    'over' (error colour) when allocations exceed the pending amount,
    'balanced' (success colour) when within a cent of zero, otherwise
    'pending' (warning colour).
    """
    if remaining < -VALIDITY_EPSILON:
        return 'over'
    if abs(remaining) < DISPLAY_EPSILON:
        return 'balanced'
    return 'pending'


def _row_errors(allocations: Sequence[ResolutionAllocation]) -> List[str]:
    errors = []
    for index, row in enumerate(allocations, start=1):
        if row.bank_account_id <= 0:
            errors.append(f"Allocation #{index}: select a bank account")
        if row.amount <= 0:
            errors.append(f"Allocation #{index}: amount must be greater than zero")
    return errors


def summarize_allocations(
    pending_amount: Any,
    allocations: Sequence[ResolutionAllocation]
) -> AllocationSummary:
    """
    Compute totals, remaining balance and validity.

    A set is valid only when every row has a bank account and a positive
    amount, something is allocated, and the rounded total does not exceed
    the rounded pending amount (plus VALIDITY_EPSILON). A partly filled row
    invalidates the whole set.

    Args:
        pending_amount: Ceiling for this resolution; number or decimal string
        allocations: Rows built by the user

    Returns:
        AllocationSummary
    """
    pending_rounded = round2(parse_amount(pending_amount))
    total_rounded = round2(total_allocated(allocations))
    remaining = pending_rounded - total_rounded

    errors = _row_errors(allocations)
    rows_ok = not errors

    exceeds = total_rounded > pending_rounded + VALIDITY_EPSILON
    if exceeds:
        errors.append("Total allocation exceeds pending amount")
    if total_rounded <= 0:
        errors.append("Nothing allocated yet")

    is_valid = rows_ok and total_rounded > 0 and not exceeds

    return AllocationSummary(
        pending_amount=pending_rounded,
        total_allocated=total_rounded,
        remaining=remaining,
        is_valid=is_valid,
        status=remaining_status(remaining),
        exceeds_pending=remaining < -VALIDITY_EPSILON,
        errors=errors,
    )


def is_valid_allocation(pending_amount: Any, allocations: Sequence[ResolutionAllocation]) -> bool:
    return summarize_allocations(pending_amount, allocations)['is_valid']
