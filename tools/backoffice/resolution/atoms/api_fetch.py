"""API fetch atom - Pure functions for back-office data retrieval"""
import logging
from typing import List, Optional

from common.base_client import BaseBackofficeClient
from tools.backoffice.resolution.atoms.schemas import (
    BankAccount,
    PendingItem,
    SafedropResolution,
    User,
)

logger = logging.getLogger(__name__)


def _unwrap(response, default):
    """Return the 'data' envelope if present, otherwise the raw body."""
    if isinstance(response, dict) and 'data' in response:
        return response['data']
    return response if response else default


def fetch_pending_items(token: Optional[str] = None) -> List[PendingItem]:
    """
    Fetch days with unresolved safedrop or cash-in-hand amounts.

    Args:
        token: Caller's bearer token (falls back to Vault/env)

    Returns:
        List of PendingItem, in backend order

    Raises:
        BackofficeAPIError: On API errors (401, 403, 404, 429, network errors)
    """
    client = BaseBackofficeClient(token=token)
    response = client.get('/safedrop-resolutions/pending')
    items = [PendingItem.model_validate(item) for item in _unwrap(response, [])]
    logger.info(f"Fetched {len(items)} pending items")
    return items


def fetch_bank_accounts(
    token: Optional[str] = None,
    is_active: Optional[bool] = None,
    per_page: int = 1000
) -> List[BankAccount]:
    """
    Fetch bank accounts.

    Args:
        token: Caller's bearer token
        is_active: Server-side filter; None returns all accounts
        per_page: Page size (the resolution screen loads everything at once)

    Returns:
        List of BankAccount
    """
    params = {'per_page': per_page}
    if is_active is not None:
        params['is_active'] = 1 if is_active else 0

    client = BaseBackofficeClient(token=token)
    response = client.get('/bank-accounts', params)
    accounts = [BankAccount.model_validate(acc) for acc in _unwrap(response, [])]
    logger.info(f"Fetched {len(accounts)} bank accounts")
    return accounts


def fetch_resolution_history(
    token: Optional[str] = None,
    page: int = 1,
    per_page: int = 20
) -> List[SafedropResolution]:
    """
    Fetch one page of resolution history, newest first.

    Args:
        token: Caller's bearer token
        page: 1-based page number
        per_page: Records per page

    Returns:
        List of SafedropResolution
    """
    client = BaseBackofficeClient(token=token)
    response = client.get('/safedrop-resolutions/history', {'page': page, 'per_page': per_page})
    return [SafedropResolution.model_validate(rec) for rec in _unwrap(response, [])]


def fetch_profile(token: Optional[str] = None) -> User:
    """
    Fetch the authenticated user's profile.

    Accepts both {'data': {...}} and a bare user object.
    """
    client = BaseBackofficeClient(token=token)
    response = client.get('/user/profile')
    return User.model_validate(_unwrap(response, {}))
