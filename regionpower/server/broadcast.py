import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

import orjson

from regionpower.server.state import WorldStateStore
from regionpower.shared.settlements import to_payload

GAME_UPDATE = "GAME_UPDATE"
CITIES_UPDATE = "CITIES_UPDATE"

@runtime_checkable
class ISubscriber(Protocol):
    """
    Anything that can receive a serialized message: a WebSocket wrapper,
    the local NetworkClient, a test double.
    """
    def send(self, message: bytes) -> None:
        ...


def build_messages(state: WorldStateStore) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Builds the two per-tick messages from the store's current contents.

    The income summary is the projection computed for this tick, keyed
    by plain resource names.
    """
    summary = state.globals.get("income_summary") or {}
    game_update = {
        "type": GAME_UPDATE,
        "resourcePool": state.resources.to_dict(),
        "incomeSummary": {getattr(k, "value", k): v for k, v in summary.items()},
        "population": state.globals.get("population", 0),
        "military": state.globals.get("military", 0),
        "tick": state.globals.get("tick", 0),
    }
    cities_update = {
        "type": CITIES_UPDATE,
        "settlements": to_payload(state.get_settlements()),
    }
    return game_update, cities_update


def encode(message: Dict[str, Any]) -> bytes:
    return orjson.dumps(message)


class Broadcaster:
    """
    Fire-and-forget fan-out of messages to every subscriber.

    publish() serializes on the calling thread (so the payload reflects the
    state at that instant) and hands delivery to a worker pool, returning
    immediately. A subscriber that raises is logged and skipped; the others
    still receive the message.
    """

    def __init__(self, max_workers: int = 4):
        self._subscribers: List[ISubscriber] = []
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="broadcast")

    def subscribe(self, subscriber: ISubscriber):
        with self._lock:
            self._subscribers.append(subscriber)
        print(f"[Broadcast] Subscriber added, total: {len(self._subscribers)}")

    def unsubscribe(self, subscriber: ISubscriber):
        with self._lock:
            self._subscribers = [s for s in self._subscribers if s is not subscriber]
        print(f"[Broadcast] Subscriber removed, total: {len(self._subscribers)}")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, *messages: Dict[str, Any]) -> Optional[Future]:
        """
        Queues delivery of 'messages' to all current subscribers.
        Returns the delivery future (useful for tests), or None if there is
        nobody to deliver to.
        """
        with self._lock:
            targets = list(self._subscribers)
        if not targets:
            return None

        encoded = [encode(m) for m in messages]
        return self._executor.submit(self._deliver, targets, encoded)

    @staticmethod
    def _deliver(targets: List[ISubscriber], encoded: List[bytes]) -> int:
        """Sends every message to every target. Returns the number of failed targets."""
        failures = 0
        for subscriber in targets:
            try:
                for payload in encoded:
                    subscriber.send(payload)
            except Exception as e:
                failures += 1
                print(f"[Broadcast] Delivery to {subscriber!r} failed: {e}")
        return failures

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
