"""Templates layer - Full workflow orchestration"""
from .resolution_workflow import (
    ResolutionAccessError,
    ensure_can_resolve,
    load_dashboard,
    open_session,
    resolve_and_refresh,
    resolve_all_and_refresh
)

__all__ = [
    'ResolutionAccessError',
    'ensure_can_resolve',
    'load_dashboard',
    'open_session',
    'resolve_and_refresh',
    'resolve_all_and_refresh'
]
