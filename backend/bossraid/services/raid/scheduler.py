import logging
import threading
import time
from typing import Callable, Dict, Optional


class TickLoop:
    """Handle for one room's periodic driver."""

    def __init__(self, key: str, gate):
        self.key = key
        # Held for the whole of each tick; stopping takes it too.
        self.gate = gate
        self.stopped = False
        self.ticks = 0


class TickScheduler:
    """One fixed-rate background loop per key (room code).

    - ``start`` on a key that already runs replaces the old loop
    - ``stop`` is a no-op for unknown keys
    - once ``stop`` returns no further tick begins for that loop; a tick
      already inside the gate finishes first
    """

    def __init__(self, socketio, interval: float, logger: Optional[logging.Logger] = None):
        self.socketio = socketio
        self.interval = interval
        self.logger = logger or logging.getLogger(__name__)
        self._loops: Dict[str, TickLoop] = {}
        self._lock = threading.Lock()

    def start(self, key: str, on_tick: Callable[[float], None], gate=None,
              on_broadcast: Optional[Callable[[], None]] = None) -> TickLoop:
        loop = TickLoop(key, gate if gate is not None else threading.RLock())
        with self._lock:
            previous = self._loops.pop(key, None)
            self._loops[key] = loop
        if previous is not None:
            self._halt(previous)
            self.logger.info(f"[loop-replace] room={key} previous_ticks={previous.ticks}")
        self.socketio.start_background_task(self._run, loop, on_tick, on_broadcast)
        self.logger.info(f"[loop-start] room={key} interval={int(self.interval * 1000)}ms")
        return loop

    def stop(self, key: str) -> bool:
        with self._lock:
            loop = self._loops.pop(key, None)
        if loop is None:
            return False
        self._halt(loop)
        self.logger.info(f"[loop-stop] room={key} ticks={loop.ticks}")
        return True

    def stop_all(self) -> None:
        with self._lock:
            keys = list(self._loops)
        for key in keys:
            self.stop(key)

    def is_running(self, key: str) -> bool:
        with self._lock:
            return key in self._loops

    def active_count(self) -> int:
        with self._lock:
            return len(self._loops)

    @staticmethod
    def _halt(loop: TickLoop) -> None:
        # Flag first: the runner may retake the gate ahead of us when a tick
        # overran the interval, and it must see the flag when it does.
        loop.stopped = True
        with loop.gate:
            pass

    def _run(self, loop: TickLoop, on_tick, on_broadcast) -> None:
        deadline = time.monotonic()
        while not loop.stopped:
            deadline += self.interval
            delay = deadline - time.monotonic()
            if delay > 0:
                self.socketio.sleep(delay)
            else:
                # Fell behind; do not try to catch up with a burst of ticks.
                deadline = time.monotonic()
            try:
                with loop.gate:
                    if loop.stopped:
                        break
                    loop.ticks += 1
                    on_tick(self.interval)
                if on_broadcast is not None:
                    on_broadcast()
            except Exception:
                self.logger.exception(f"[tick-fault] room={loop.key} tick={loop.ticks}")
