"""
Database modules for Face Attendance Kiosk
"""

from .account_db import AccountDB, AccountExists

__all__ = [
    'AccountDB',
    'AccountExists',
]
