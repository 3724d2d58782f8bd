"""Back-Office Resolution - Atoms Package

Layer 1: Pure, single-purpose functions for currency values, API shapes
and back-office REST calls.
"""

from .currency import parse_amount, round2, format_currency
from .schemas import PendingItem, BankAccount, ResolutionAllocation, SafedropResolution, User
from .api_fetch import fetch_pending_items, fetch_bank_accounts, fetch_resolution_history, fetch_profile
from .api_submit import submit_resolution
from .permissions import is_admin, can_resolve

__all__ = [
    'parse_amount',
    'round2',
    'format_currency',
    'PendingItem',
    'BankAccount',
    'ResolutionAllocation',
    'SafedropResolution',
    'User',
    'fetch_pending_items',
    'fetch_bank_accounts',
    'fetch_resolution_history',
    'fetch_profile',
    'submit_resolution',
    'is_admin',
    'can_resolve',
]
