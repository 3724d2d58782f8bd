"""
Molecules - Layer 2 Components

Molecules combine atoms into allocation rules and submission flows.
"""

from .allocation_validator import summarize_allocations, is_valid_allocation
from .resolution_syncer import sync_resolution, resolve_all_pending

__all__ = [
    'summarize_allocations',
    'is_valid_allocation',
    'sync_resolution',
    'resolve_all_pending',
]
