"""Layer 3: Organisms - Complex business logic composition"""

from .resolution_session import ResolutionSession

__all__ = ['ResolutionSession']
