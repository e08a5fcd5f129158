import threading
import time
from typing import Callable, Optional

class TickScheduler:
    """
    Drives GameSession.tick() at a fixed period on a background thread.

    The period is only a target: each tick receives the real elapsed time
    since the previous one, measured with a monotonic clock. Ticks never
    overlap because they all run on this one thread, one after another.
    """

    def __init__(self,
                 tick: Callable[[float], bool],
                 interval: float = 1.0,
                 clock: Callable[[], float] = time.monotonic):
        self._tick = tick
        self.interval = interval
        self._clock = clock
        self._last: Optional[float] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def step(self) -> float:
        """
        Runs one tick with the time elapsed since the previous step.
        The very first step only starts the clock. Returns the elapsed time.
        """
        now = self._clock()
        if self._last is None:
            self._last = now
            return 0.0

        elapsed = now - self._last
        self._last = now
        if elapsed > 0:
            self._tick(elapsed)
        return elapsed

    def start(self):
        if self.running:
            print("[Scheduler] Game loop already running")
            return

        print(f"[Scheduler] Starting game loop ({self.interval:.2f}s period)...")
        self._stop.clear()
        self._last = None
        self.step()
        self._thread = threading.Thread(target=self._run, name="tick-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        if not self.running:
            return
        self._stop.set()
        self._thread.join(timeout)
        self._thread = None
        print("[Scheduler] Game loop stopped")

    def _run(self):
        next_deadline = self._clock() + self.interval
        while not self._stop.wait(max(0.0, next_deadline - self._clock())):
            try:
                self.step()
            except Exception as e:
                # The session already guards its own ticks; this only catches
                # failures in the scheduler itself.
                print(f"[Scheduler] Error in tick: {e!r}")
            next_deadline += self.interval
            # Fell behind (e.g. a very slow tick): don't try to catch up in a burst.
            if next_deadline < self._clock():
                next_deadline = self._clock() + self.interval
