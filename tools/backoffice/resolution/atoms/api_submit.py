"""API submit atom - POST resolutions to the back-office API"""
import logging
from typing import Any, Dict, List, Optional

from common.base_client import BaseBackofficeClient

logger = logging.getLogger(__name__)


def submit_resolution(
    daily_sale_id: int,
    resolution_type: str,
    resolutions: List[Dict[str, Any]],
    token: Optional[str] = None
) -> Dict[str, Any]:
    """
    Submit allocations for one day's pending amount.

    The backend applies all rows atomically and re-checks the pending
    amount, so a concurrent resolution surfaces here as an API error.

    Args:
        daily_sale_id: PendingItem id
        resolution_type: 'safedrops' | 'cash_in_hand'
        resolutions: Rows as dicts:
            {
                'bank_account_id': int,
                'amount': float,
                'notes': str (optional)
            }
        token: Caller's bearer token

    Returns:
        Backend response body, e.g. {'success': True, 'message': '...'}

    Raises:
        BackofficeAPIError: On API errors; server_message carries the
            backend's 'message' field when present
    """
    payload = {
        'daily_sale_id': daily_sale_id,
        'type': resolution_type,
        'resolutions': resolutions,
    }
    logger.info(
        f"Submitting {len(resolutions)} {resolution_type} allocation(s) for daily sale {daily_sale_id}"
    )

    client = BaseBackofficeClient(token=token)
    response = client.post('/safedrop-resolutions/resolve', payload)

    logger.info(f"Daily sale {daily_sale_id} {resolution_type} resolved")
    return response
