import random
import threading
from typing import List, Optional, Sequence

from regionpower.engine.interfaces import ISystem
from regionpower.engine.simulator import Engine, resolve_order
from regionpower.modules.base import registration
from regionpower.server.broadcast import Broadcaster, ISubscriber, build_messages, encode
from regionpower.server.io.save_manager import SaveManager
from regionpower.server.io.static_loader import StaticAssetLoader
from regionpower.server.state import WorldStateStore
from regionpower.shared.actions import GameAction
from regionpower.shared.config import GameConfig
from regionpower.shared.events import (
    EventProtestEnded, EventProtestStarted, EventSettlementLost,
)

class GameSession:
    """
    The 'Host' of the game. It manages the lifecycle of the simulation.

    Responsibilities:
    1. Initialization: Loads data using StaticAssetLoader.
    2. Loop: Ticks the Engine with a delta_time (driven by TickScheduler).
    3. Networking: Receives actions from clients and broadcasts updates.
    4. Persistence: Handles saving/loading.
    """
    def __init__(self,
                 config: GameConfig,
                 state: Optional[WorldStateStore] = None,
                 systems: Optional[Sequence[ISystem]] = None,
                 broadcaster: Optional[Broadcaster] = None,
                 rng: Optional[random.Random] = None):
        self.config = config

        # 1. Load the World
        self.state: WorldStateStore = state if state is not None else StaticAssetLoader(config).compile_initial_state()

        # 2. Systems, sorted by their declared dependencies
        if systems is None:
            systems = registration.register(config.settings, rng=rng)
        self.systems: List[ISystem] = resolve_order(systems)
        print(f"[Session] System order: {[s.id for s in self.systems]}")

        self.broadcaster = broadcaster if broadcaster is not None else Broadcaster(config.settings.broadcast_workers)
        self.save_manager = SaveManager(config)

        # 3. Action Queue
        # Actions arrive from any thread and are applied all at once at the
        # start of the next tick. The same lock serializes ticks, so a new
        # tick never starts while the previous one is still writing.
        self.action_queue: List[GameAction] = []
        self._lock = threading.Lock()

    def tick(self, delta_time: float) -> bool:
        """
        The heartbeat of the server. Called once per period by the scheduler.

        Returns False if the tick failed. A failed tick is logged and dropped;
        whatever it already wrote to the store stays.
        """
        with self._lock:
            actions = self.action_queue
            self.action_queue = []
            try:
                Engine.step(self.state, actions, delta_time, self.systems)
            except Exception as e:
                print(f"[Session] Error in game loop tick {self.state.globals.get('tick', 0)}: {e!r}")
                return False

            self._log_events()
            messages = build_messages(self.state)

        # Delivery happens on the broadcaster's pool, never on the tick thread.
        self.broadcaster.publish(*messages)
        return True

    def _log_events(self):
        for event in self.state.events:
            match event:
                case EventSettlementLost(settlement_id):
                    print(f"[Session] Settlement {settlement_id} is now neutral.")
                case EventProtestStarted(settlement_id, timer):
                    print(f"[Session] Settlement {settlement_id} is protesting ({timer:.0f}s).")
                case EventProtestEnded(settlement_id):
                    print(f"[Session] Protests in settlement {settlement_id} ended.")

    def receive_action(self, action: GameAction):
        """
        Endpoint for Clients to submit commands.
        """
        with self._lock:
            self.action_queue.append(action)

    def subscribe(self, subscriber: ISubscriber):
        """
        Sends an observer the current world, then registers it for tick
        broadcasts. Both happen under the tick lock, so no later tick can
        reach the subscriber before its initial state does.
        """
        with self._lock:
            for message in build_messages(self.state):
                try:
                    subscriber.send(encode(message))
                except Exception as e:
                    print(f"[Session] Error sending initial state: {e}")
            self.broadcaster.subscribe(subscriber)

    def unsubscribe(self, subscriber: ISubscriber):
        self.broadcaster.unsubscribe(subscriber)

    def get_state_snapshot(self) -> WorldStateStore:
        """
        Returns the live store. Tables are immutable frames, so readers
        holding one see a consistent snapshot even while the next tick runs.
        """
        return self.state

    def save_game(self, save_name: str) -> bool:
        with self._lock:
            return self.save_manager.save_game(self.state, save_name)

    def load_game(self, save_name: str) -> bool:
        with self._lock:
            loaded = self.save_manager.load_game(save_name, self.state.catalog)
            if loaded is None:
                return False
            self.state = loaded
            return True

    def shutdown(self):
        self.broadcaster.shutdown(wait=True)
