import threading
from typing import Any, Dict, Optional

import orjson

from regionpower.server.broadcast import CITIES_UPDATE, GAME_UPDATE
from regionpower.server.session import GameSession
from regionpower.shared.actions import GameAction
from regionpower.server.state import WorldStateStore

class NetworkClient:
    """
    The Bridge between a client and the Server Session.

    Architecture (Service Pattern):
        This component isolates the 'Network' logic.
        Currently, it mocks a network connection by holding a direct reference
        to the local GameSession, and subscribes to its broadcasts exactly
        like a WebSocket connection would.

        Future Refactoring for Multiplayer:
        1. Create a `RemoteNetworkClient` implementing the same methods.
        2. Replace `self.session.receive_action()` with `socket.send()`.
    """

    def __init__(self, session: GameSession, player_id: str = "local_player"):
        self.session = session
        self.player_id = player_id

        # Last message of each type, decoded.
        self.last_game_update: Optional[Dict[str, Any]] = None
        self.last_cities_update: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    def connect(self):
        self.session.subscribe(self)

    def disconnect(self):
        self.session.unsubscribe(self)

    def send(self, message: bytes) -> None:
        """
        Called by the broadcaster (from its worker threads).
        """
        data = orjson.loads(message)
        with self._lock:
            if data.get("type") == GAME_UPDATE:
                self.last_game_update = data
            elif data.get("type") == CITIES_UPDATE:
                self.last_cities_update = data

    def send_action(self, action: GameAction):
        """
        Sends an intent to the server.

        Note: The client does NOT apply the action locally.
        It waits for the next tick's broadcast.
        This is 'Authoritative Server' architecture.
        """
        # Tag the action so the server knows who sent it
        action.player_id = self.player_id
        self.session.receive_action(action)

    def get_state(self) -> WorldStateStore:
        """
        Fetches the live world state (local sessions only).
        """
        return self.session.get_state_snapshot()

    def request_save(self, save_name: str) -> bool:
        print(f"[NetworkClient] Requesting server to save '{save_name}'...")
        return self.session.save_game(save_name)
