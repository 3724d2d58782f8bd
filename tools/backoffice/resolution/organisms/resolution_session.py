"""
Resolution Session Organism - State of one open resolution

Owns the allocation rows for a single day and cash type from the moment a
resolution is opened until it is submitted or discarded. Rows are never
persisted; closing the session drops them.

Layer: 3 (Organisms - Complex business logic compositions)
"""

import logging
from typing import Any, Callable, List, Optional, Sequence

from tools.backoffice.resolution.atoms.schemas import (
    TYPE_LABELS,
    BankAccount,
    PendingItem,
    ResolutionAllocation,
)
from tools.backoffice.resolution.molecules import allocation_rows
from tools.backoffice.resolution.molecules.allocation_validator import (
    AllocationSummary,
    summarize_allocations,
)
from tools.backoffice.resolution.molecules.resolution_syncer import sync_resolution

logger = logging.getLogger(__name__)


class ResolutionSession:
    """
    Allocation editor for one PendingItem and one cash type.

    Row edits go through the pure functions in allocation_rows and replace
    self.allocations wholesale. submit() only talks to the backend when the
    current rows are valid, and leaves the rows in place on failure so
    the user can correct and retry.
    """

    def __init__(
        self,
        item: PendingItem,
        resolution_type: str,
        bank_accounts: Sequence[BankAccount],
        token: Optional[str] = None
    ):
        """
        Open a session.

        Args:
            item: Day being resolved
            resolution_type: 'safedrops' | 'cash_in_hand'
            bank_accounts: All known accounts; inactive ones are hidden
            token: Caller's bearer token, forwarded on submit

        Raises:
            ValueError: Unknown resolution type
        """
        if resolution_type not in TYPE_LABELS:
            raise ValueError(f"Invalid resolution type: {resolution_type}")

        self.item = item
        self.resolution_type = resolution_type
        self.bank_accounts = allocation_rows.active_bank_accounts(bank_accounts)
        self.token = token
        self.pending_amount = item.pending_for(resolution_type)
        self.allocations: List[ResolutionAllocation] = allocation_rows.initial_allocations()
        self.error: Optional[str] = None
        self.field_errors: List[str] = []
        self.last_status_code: Optional[int] = None
        self.submitting = False

        logger.info(
            f"Resolution session opened for daily sale {item.id} ({resolution_type}, "
            f"pending {self.pending_amount:.2f})"
        )

    @property
    def title(self) -> str:
        return f"Resolve {TYPE_LABELS[self.resolution_type]} - {self.item.date[:10]}"

    @property
    def max_amount(self) -> float:
        return allocation_rows.max_allocation_amount(self.pending_amount)

    # Row editing

    def add_allocation(self) -> None:
        self.allocations = allocation_rows.add_allocation(self.allocations)

    def remove_allocation(self, index: int) -> None:
        self.allocations = allocation_rows.remove_allocation(self.allocations, index)

    def update_allocation(self, index: int, field: str, value: Any) -> None:
        """Edit one field; amounts are capped at the pending amount."""
        if field == 'amount':
            value = allocation_rows.clamp_amount(value, self.pending_amount)
        self.allocations = allocation_rows.update_allocation(self.allocations, index, field, value)

    def set_allocations(self, allocations: Sequence[ResolutionAllocation]) -> None:
        """Replace all rows at once (rows arriving from an API request)."""
        self.allocations = list(allocations) or allocation_rows.initial_allocations()

    def auto_fill(self) -> None:
        self.allocations = allocation_rows.auto_fill(self.allocations, self.pending_amount)

    @property
    def can_auto_fill(self) -> bool:
        return allocation_rows.can_auto_fill(self.allocations)

    # Derived state

    @property
    def summary(self) -> AllocationSummary:
        return summarize_allocations(self.pending_amount, self.allocations)

    @property
    def is_valid(self) -> bool:
        return self.summary['is_valid']

    @property
    def can_submit(self) -> bool:
        return self.is_valid and not self.submitting

    def dismiss_error(self) -> None:
        self.error = None
        self.field_errors = []

    # Submission

    def submit(self, on_success: Optional[Callable[[], Any]] = None) -> bool:
        """
        Send the allocations to the backend.

        Args:
            on_success: Called after the backend accepts the resolution;
                callers use it to refetch pending items and history.

        Returns:
            True if the backend accepted the resolution
        """
        if self.submitting:
            logger.warning(f"Submission already in flight for daily sale {self.item.id}")
            return False
        if not self.is_valid:
            logger.info(f"Allocation for daily sale {self.item.id} is invalid, not submitting")
            return False

        self.submitting = True
        self.error = None
        self.field_errors = []
        try:
            result = sync_resolution(
                daily_sale_id=self.item.id,
                resolution_type=self.resolution_type,
                allocations=self.allocations,
                token=self.token
            )
        finally:
            self.submitting = False

        if result['status'] != 'success':
            self.error = result['message']
            self.field_errors = result.get('errors', [])
            self.last_status_code = result.get('status_code')
            return False

        if on_success is not None:
            on_success()
        return True
