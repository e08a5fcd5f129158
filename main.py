import time
from pathlib import Path

from regionpower.client.network_client import NetworkClient
from regionpower.server.scheduler import TickScheduler
from regionpower.server.session import GameSession
from regionpower.shared.config import GameConfig

def main():
    print("RegionPower server starting...")

    config = GameConfig(user_dir=Path.cwd())
    session = GameSession(config)

    # A local observer, so the console shows what clients would receive.
    observer = NetworkClient(session)
    observer.connect()

    scheduler = TickScheduler(session.tick, interval=config.settings.tick_interval)
    scheduler.start()

    try:
        while True:
            time.sleep(10)
            update = observer.last_game_update
            if update:
                pool = {k: round(v, 1) for k, v in update["resourcePool"].items()}
                print(f"[Main] Tick {update['tick']}: population={update['population']} resources={pool}")
    except KeyboardInterrupt:
        print("[Main] Shutting down...")
    finally:
        scheduler.stop()
        session.shutdown()

if __name__ == "__main__":
    main()
