"""
Fail2Ban Redux CLI sub-commands.
"""

from fail2ban_redux.cli.emit import emit_app
from fail2ban_redux.cli.filters import filters_app

__all__ = ["emit_app", "filters_app"]
