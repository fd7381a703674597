"""Per-user dispatcher — one drain session per user at a time.

Learn: The dispatcher exists to call the orchestrator safely. It owns the
claim set, persists inbound messages as pending, and drains each user's
backlog sequentially while different users proceed concurrently.
"""

from chatqueue.dispatcher.claims import ClaimSet
from chatqueue.dispatcher.user_dispatcher import DispatcherStats, UserDispatcher

__all__ = ["ClaimSet", "DispatcherStats", "UserDispatcher"]
