"""
Host framework integrations.
"""

from fail2ban_redux.integrations.middleware import Fail2BanMiddleware

__all__ = ["Fail2BanMiddleware"]
