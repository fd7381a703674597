"""Claim set — which users currently have an active drain session.

Learn: All methods are synchronous. On a single event loop nothing can run
between the membership test and the insert in try_claim, which makes it an
atomic test-and-set for concurrent coroutines: of two near-simultaneous
claims for the same user, exactly one wins.

This is in-process state only. Two processes sharing a message store each
have their own ClaimSet and can drain the same user at once.
"""

from typing import Iterator


class ClaimSet:
    """Set of user ids currently being drained."""

    def __init__(self):
        self._claimed: set[str] = set()

    def try_claim(self, user_id: str) -> bool:
        """Claim `user_id`. Returns False if it is already claimed."""
        if user_id in self._claimed:
            return False
        self._claimed.add(user_id)
        return True

    def release(self, user_id: str) -> None:
        self._claimed.discard(user_id)

    def is_claimed(self, user_id: str) -> bool:
        return user_id in self._claimed

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._claimed

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._claimed))

    def __len__(self) -> int:
        return len(self._claimed)
