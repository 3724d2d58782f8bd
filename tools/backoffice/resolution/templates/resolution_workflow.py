"""
Resolution Workflow Template - Load, gate and refresh the resolution screen

Layer 4: Templates (full workflow orchestration)
Composes atoms, molecules and the ResolutionSession organism into the
operations the web layer exposes.

Public API:
    - ensure_can_resolve(user)
    - load_dashboard(token)
    - open_session(item, resolution_type, bank_accounts, token)
    - find_pending_item(items, daily_sale_id)
    - resolve_and_refresh(session)
    - resolve_all_and_refresh(resolution_type, bank_account_id, notes, token)

Example:
    >>> user = fetch_profile(token)
    >>> ensure_can_resolve(user)
    >>> dashboard = load_dashboard(token)
    >>> session = open_session(dashboard['pending_items'][0], 'safedrops',
    ...                        dashboard['bank_accounts'], token)
    >>> session.update_allocation(0, 'bank_account_id', 3)
    >>> session.auto_fill()
    >>> result = resolve_and_refresh(session)
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from common.base_client import BackofficeAPIError
from tools.backoffice.resolution.atoms.api_fetch import (
    fetch_bank_accounts,
    fetch_pending_items,
    fetch_resolution_history,
)
from tools.backoffice.resolution.atoms.permissions import can_resolve
from tools.backoffice.resolution.atoms.schemas import BankAccount, PendingItem, User
from tools.backoffice.resolution.molecules.resolution_syncer import resolve_all_pending
from tools.backoffice.resolution.organisms.resolution_session import ResolutionSession

logger = logging.getLogger(__name__)

BANK_ACCOUNTS_PAGE_SIZE = 1000
HISTORY_PAGE_SIZE = 20


class ResolutionAccessError(Exception):
    """Raised when a non-admin user tries to resolve pending amounts."""
    pass


def ensure_can_resolve(user: Optional[User]) -> None:
    """
    Raises:
        ResolutionAccessError: Unless user is an administrator
    """
    if not can_resolve(user):
        who = user.name if user else 'anonymous'
        logger.warning(f"Resolution access denied for {who}")
        raise ResolutionAccessError("Only administrators can access the resolution system.")


def pending_of_type(items: Sequence[PendingItem], resolution_type: str) -> List[PendingItem]:
    """Items that still have a non-zero pending amount of the given type."""
    return [item for item in items if item.pending_for(resolution_type) != 0]


def total_pending(items: Sequence[PendingItem], resolution_type: str) -> float:
    return sum(item.pending_for(resolution_type) for item in items)


def load_dashboard(token: Optional[str] = None) -> Dict[str, Any]:
    """
    Fetch everything the resolution screen shows.

    Returns:
        {
            'pending_items': List[PendingItem],
            'bank_accounts': List[BankAccount],
            'history': List[SafedropResolution],
            'pending_safedrops': List[PendingItem],
            'total_pending_safedrops': float,
            'pending_cash_in_hand': List[PendingItem],
            'total_pending_cash_in_hand': float
        }

    Raises:
        BackofficeAPIError: If any of the three fetches fails
    """
    pending_items = fetch_pending_items(token=token)
    bank_accounts = fetch_bank_accounts(token=token, per_page=BANK_ACCOUNTS_PAGE_SIZE)
    history = fetch_resolution_history(token=token, per_page=HISTORY_PAGE_SIZE)

    pending_safedrops = pending_of_type(pending_items, 'safedrops')
    pending_cash = pending_of_type(pending_items, 'cash_in_hand')

    logger.info(
        f"Dashboard loaded: {len(pending_safedrops)} safedrop and "
        f"{len(pending_cash)} cash-in-hand item(s) pending"
    )
    return {
        'pending_items': pending_items,
        'bank_accounts': bank_accounts,
        'history': history,
        'pending_safedrops': pending_safedrops,
        'total_pending_safedrops': total_pending(pending_safedrops, 'safedrops'),
        'pending_cash_in_hand': pending_cash,
        'total_pending_cash_in_hand': total_pending(pending_cash, 'cash_in_hand'),
    }


def find_pending_item(items: Sequence[PendingItem], daily_sale_id: int) -> Optional[PendingItem]:
    for item in items:
        if item.id == daily_sale_id:
            return item
    return None


def open_session(
    item: PendingItem,
    resolution_type: str,
    bank_accounts: Sequence[BankAccount],
    token: Optional[str] = None
) -> ResolutionSession:
    return ResolutionSession(item, resolution_type, bank_accounts, token=token)


def _refresh_dashboard(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Reload the dashboard after resolutions were committed.

    The backend has already accepted the money at this point, so a failed
    reload is logged and reported as a missing dashboard, never as a
    failed resolution.
    """
    try:
        return load_dashboard(token=token)
    except BackofficeAPIError as e:
        logger.error(f"Resolution committed but dashboard refresh failed: {e}")
        return None


def resolve_and_refresh(session: ResolutionSession) -> Dict[str, Any]:
    """
    Submit a session and, if accepted, reload the dashboard.

    Consistency comes from the full refetch; nothing is patched locally.
    On success 'dashboard' is None when the reload itself failed.

    Returns:
        {
            'status': 'success' | 'invalid' | 'failed',
            'message': str,
            'errors': List[str],
            'summary': AllocationSummary,
            'dashboard': Dict | None   # only on success
        }
    """
    refreshed: Dict[str, Any] = {}

    def _refetch():
        dashboard = _refresh_dashboard(session.token)
        if dashboard is not None:
            refreshed.update(dashboard)

    summary = session.summary
    if not summary['is_valid']:
        return {
            'status': 'invalid',
            'message': 'Allocation is not valid',
            'errors': summary['errors'],
            'summary': summary,
            'dashboard': None,
        }

    if not session.submit(on_success=_refetch):
        return {
            'status': 'failed',
            'message': session.error,
            'errors': session.field_errors,
            'status_code': session.last_status_code,
            'summary': summary,
            'dashboard': None,
        }

    return {
        'status': 'success',
        'message': f"{session.title} completed",
        'errors': [],
        'summary': summary,
        'dashboard': refreshed or None,
    }


def resolve_all_and_refresh(
    resolution_type: str,
    bank_account_id: int,
    notes: Optional[str] = None,
    token: Optional[str] = None
) -> Dict[str, Any]:
    """
    Batch-resolve every pending item of one type, then reload the dashboard.

    The dashboard is reloaded even after a partial failure, since earlier
    items in the batch may already be resolved.
    """
    pending_items = fetch_pending_items(token=token)
    result = resolve_all_pending(
        pending_items,
        resolution_type,
        bank_account_id,
        notes=notes,
        token=token
    )
    result['dashboard'] = _refresh_dashboard(token) if result['succeeded'] else None
    return result
