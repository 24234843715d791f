"""Fan-out of state snapshots to every live push connection."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from uuid import uuid4

logger = logging.getLogger(__name__)

Snapshot = dict[str, object]

_CLOSED = object()


class Subscription:
    """One live connection, optionally bound to a player id.

    Snapshots are handed over to the subscriber's event loop thread-safely and
    kept in a latest-wins mailbox: a slow reader skips intermediate states but
    never holds up the publisher or other subscribers.
    """

    def __init__(self, player_id: str | None, loop: asyncio.AbstractEventLoop) -> None:
        self.id = uuid4().hex
        self.player_id = player_id or None
        self._loop = loop
        self._mailbox: asyncio.Queue[object] = asyncio.Queue()
        self._closing = False
        self.closed = False

    def offer(self, snapshot: Snapshot) -> None:
        """Queue a snapshot from any thread. Raises RuntimeError once the loop is gone."""
        self._loop.call_soon_threadsafe(self._deliver, snapshot)

    def close(self) -> None:
        """Ask the reader to stop; pending snapshots are discarded."""
        try:
            self._loop.call_soon_threadsafe(self._deliver, _CLOSED)
        except RuntimeError:
            self.closed = True

    async def receive(self, timeout: float | None = None) -> Snapshot | None:
        """Wait for the next snapshot.

        Returns None on timeout or once the subscription is closed; check
        ``closed`` to tell the two apart.
        """
        if self.closed:
            return None
        try:
            item = await asyncio.wait_for(self._mailbox.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CLOSED:
            self.closed = True
            return None
        return item  # type: ignore[return-value]

    def _deliver(self, item: object) -> None:
        if self._closing:
            return
        if item is _CLOSED:
            self._closing = True
        while not self._mailbox.empty():
            self._mailbox.get_nowait()
        self._mailbox.put_nowait(item)


class BroadcastHub:
    """Registry of live subscriptions.

    Not synchronized on its own: the game manager only touches it while
    holding the state lock.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, Subscription] = {}

    def add(self, subscription: Subscription) -> bool:
        """Register a subscription. Returns True if it is its player's first live one."""
        first = subscription.player_id is not None and not self._has_player(subscription.player_id)
        self._subscriptions[subscription.id] = subscription
        return first

    def remove(self, subscription: Subscription) -> bool:
        """Unregister a subscription. Returns True if its player has no live ones left."""
        if self._subscriptions.pop(subscription.id, None) is None:
            return False
        return subscription.player_id is not None and not self._has_player(subscription.player_id)

    def disconnect_player(self, player_id: str) -> bool:
        """Close every subscription bound to ``player_id``. Returns whether any existed."""
        bound = [sub for sub in self._subscriptions.values() if sub.player_id == player_id]
        for subscription in bound:
            del self._subscriptions[subscription.id]
            subscription.close()
        return bool(bound)

    def online_player_ids(self) -> set[str]:
        return {sub.player_id for sub in self._subscriptions.values() if sub.player_id is not None}

    def send(self, subscription: Subscription, snapshot: Snapshot) -> bool:
        """Deliver one snapshot, dropping the subscription if its loop is gone.

        Returns True when the drop left its player with no live subscriptions.
        """
        try:
            subscription.offer(snapshot)
        except RuntimeError:
            logger.warning("Dropping subscriber %s: event loop closed", subscription.id)
            return self.remove(subscription)
        return False

    def broadcast(self, render: Callable[[str | None], Snapshot]) -> int:
        """Push ``render(player_id)`` to every subscription; returns how many were reached."""
        reached = 0
        for subscription in list(self._subscriptions.values()):
            self.send(subscription, render(subscription.player_id))
            if subscription.id in self._subscriptions:
                reached += 1
        return reached

    def close_all(self) -> None:
        for subscription in self._subscriptions.values():
            subscription.close()
        self._subscriptions.clear()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def _has_player(self, player_id: str) -> bool:
        return any(sub.player_id == player_id for sub in self._subscriptions.values())
