"""
Core Utilities

Modules:
    - security: Identity provider token verification
    - exceptions: HTTP error helpers
"""

from chatvault.core import security, exceptions

__all__ = ["security", "exceptions"]
