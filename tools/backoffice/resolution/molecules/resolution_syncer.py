"""
Resolution Syncer Molecule - Submit accepted allocations to the back office

Orchestrates the api_submit atom for a single day's resolution and for the
"resolve all" batch, translating API exceptions into result dicts the
upper layers can display.

Part of Layer 2: Molecules (2-3 atom combinations)

Public API:
    - build_resolution_payload(daily_sale_id, resolution_type, allocations) -> Dict
    - sync_resolution(daily_sale_id, resolution_type, allocations, token) -> Dict
    - resolve_all_pending(items, resolution_type, bank_account_id, notes, token) -> Dict

Example:
    >>> rows = [ResolutionAllocation(bank_account_id=3, amount=250.0, notes='Deposit')]
    >>> sync_resolution(42, 'safedrops', rows)
    {'status': 'success', 'message': 'Resolution processed successfully', 'errors': []}
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from common.base_client import BackofficeAPIError, error_messages
from tools.backoffice.resolution.atoms.api_submit import submit_resolution
from tools.backoffice.resolution.atoms.schemas import (
    RESOLUTION_TYPES,
    PendingItem,
    ResolutionAllocation,
)

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = 'An error occurred while processing the resolution'
DEFAULT_BATCH_ERROR_MESSAGE = 'An error occurred while processing the resolutions'
DEFAULT_SUCCESS_MESSAGE = 'Resolution processed successfully'


def _validate_type(resolution_type: str) -> None:
    if resolution_type not in RESOLUTION_TYPES:
        raise ValueError(
            f"Invalid resolution type: {resolution_type}. Must be 'safedrops' or 'cash_in_hand'"
        )


def build_resolution_payload(
    daily_sale_id: int,
    resolution_type: str,
    allocations: Sequence[ResolutionAllocation]
) -> Dict[str, Any]:
    """
    Build the resolve request body.

    Rows with amount <= 0 are dropped; a valid allocation set has none,
    but half-edited rows must never reach the backend.

    Raises:
        ValueError: Unknown resolution type
    """
    _validate_type(resolution_type)
    return {
        'daily_sale_id': daily_sale_id,
        'type': resolution_type,
        'resolutions': [
            {
                'bank_account_id': row.bank_account_id,
                'amount': row.amount,
                'notes': row.notes or None,
            }
            for row in allocations
            if row.amount > 0
        ],
    }


def _failure(error: BackofficeAPIError, fallback: str) -> Dict[str, Any]:
    return {
        'status': 'failed',
        'message': error.server_message or fallback,
        'errors': error_messages(error.errors),
        'status_code': error.status_code,
    }


def sync_resolution(
    daily_sale_id: int,
    resolution_type: str,
    allocations: Sequence[ResolutionAllocation],
    token: Optional[str] = None
) -> Dict[str, Any]:
    """
    Submit one day's allocations.

    No retry is attempted: a rejection (for instance another admin already
    consumed the pending amount) is reported back with the backend's
    message verbatim.

    Returns:
        {
            'status': 'success' | 'failed',
            'message': str,
            'errors': List[str]       # field errors from a 422 body
            'status_code': int | None # only on failure
        }
    """
    payload = build_resolution_payload(daily_sale_id, resolution_type, allocations)

    try:
        response = submit_resolution(
            daily_sale_id=payload['daily_sale_id'],
            resolution_type=payload['type'],
            resolutions=payload['resolutions'],
            token=token
        )
    except BackofficeAPIError as e:
        logger.error(f"Resolution for daily sale {daily_sale_id} rejected: {e}")
        return _failure(e, DEFAULT_ERROR_MESSAGE)

    message = response.get('message') if isinstance(response, dict) else None
    return {
        'status': 'success',
        'message': message or DEFAULT_SUCCESS_MESSAGE,
        'errors': [],
    }


def resolve_all_pending(
    items: Sequence[PendingItem],
    resolution_type: str,
    bank_account_id: int,
    notes: Optional[str] = None,
    token: Optional[str] = None
) -> Dict[str, Any]:
    """
    Resolve every pending amount of one type into a single bank account.

    Items are submitted one at a time, each as a single full-amount
    allocation. Processing stops at the first rejection; items already
    submitted stay resolved.

    Returns:
        {
            'status': 'success' | 'failed',
            'total': int,       # items with a non-zero pending amount
            'succeeded': int,
            'message': str,
            'resolved_ids': List[int]
        }
    """
    _validate_type(resolution_type)

    candidates = [item for item in items if item.pending_for(resolution_type) != 0]
    result: Dict[str, Any] = {
        'status': 'success',
        'total': len(candidates),
        'succeeded': 0,
        'message': '',
        'resolved_ids': [],
    }

    if bank_account_id <= 0:
        result['status'] = 'failed'
        result['message'] = 'Select a bank account'
        return result

    logger.info(f"Batch resolving {len(candidates)} {resolution_type} item(s) into account {bank_account_id}")

    resolved_ids: List[int] = result['resolved_ids']
    for item in candidates:
        try:
            submit_resolution(
                daily_sale_id=item.id,
                resolution_type=resolution_type,
                resolutions=[{
                    'bank_account_id': bank_account_id,
                    'amount': item.pending_for(resolution_type),
                    'notes': notes or None,
                }],
                token=token
            )
        except BackofficeAPIError as e:
            logger.error(f"Batch stopped at daily sale {item.id}: {e}")
            result['status'] = 'failed'
            result['message'] = e.server_message or DEFAULT_BATCH_ERROR_MESSAGE
            break
        resolved_ids.append(item.id)

    result['succeeded'] = len(resolved_ids)
    if result['status'] == 'success':
        result['message'] = f"Resolved {len(resolved_ids)} {resolution_type} item(s)"
    logger.info(f"Batch finished: {result['succeeded']}/{result['total']} succeeded")
    return result
