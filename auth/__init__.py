"""
Token utility and route guard in front of the kiosk display
"""

from .tokens import TokenError, issue_token, verify_token
from .guard import extract_token, forwarded_identity, install_route_guard

__all__ = [
    'TokenError',
    'issue_token',
    'verify_token',
    'extract_token',
    'forwarded_identity',
    'install_route_guard',
]
