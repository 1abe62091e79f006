import logging
import os
import time
from threading import Condition, Lock, Timer

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_INTERVAL = 0.5


class LoggingObserver:
    """Reports watch and build activity as log lines."""

    def __init__(self, log=None):
        self.log = log or logger

    def on_change(self, path, kind, label="Source"):
        self.log.info("%s file %s: %s", label, kind, os.path.relpath(path))

    def on_build_start(self):
        self.log.info("🔄 Building documentation...")

    def on_build_success(self, completed_at):
        self.log.info("✅ Build completed at %s", time.strftime("%X", time.localtime(completed_at)))

    def on_build_failure(self, error=None):
        if error is not None:
            self.log.error("❌ Build failed!", exc_info=error)
        else:
            self.log.error("❌ Build failed!")

    def on_build_queued(self):
        self.log.info("Build already in progress, queuing next build...")


class RebuildScheduler:
    """
    Turns a stream of change notifications into serialized rebuilds.

    Features:
    - Debounces bursts: every notify() restarts the delay timer
    - Never runs two rebuilds at once
    - A change that lands while a rebuild is running queues exactly one follow-up
    - Survives failing rebuilds
    """

    def __init__(self, rebuild_callback, options=None,
                 debounce_interval=DEFAULT_DEBOUNCE_INTERVAL, observer=None):
        """
        Initialize the scheduler.

        Args:
            rebuild_callback: Called as rebuild_callback(options); returning False marks a failure
            options: Build configuration passed through to the callback unmodified
            debounce_interval: Seconds of quiet required before a rebuild starts
            observer: Receives build/change notifications (defaults to LoggingObserver)
        """
        if debounce_interval < 0:
            raise ValueError("debounce_interval must be non-negative")
        self.rebuild_callback = rebuild_callback
        self._options = options
        self._debounce_interval = debounce_interval
        self.observer = observer or LoggingObserver()
        self.lock = Lock()
        self.idle = Condition(self.lock)
        self.timer = None
        self.is_rebuilding = False
        self.rebuild_queued = False
        self.closed = False
        self.last_build_at = None
        self.last_result = None

    @property
    def options(self):
        return self._options

    @property
    def debounce_interval(self):
        return self._debounce_interval

    @property
    def busy(self):
        with self.lock:
            return self.is_rebuilding

    @property
    def pending(self):
        with self.lock:
            return self.timer is not None

    @property
    def queued(self):
        with self.lock:
            return self.rebuild_queued

    def notify(self):
        """Record a change and (re)arm the debounce timer."""
        with self.lock:
            if self.closed:
                return
            if self.timer:
                self.timer.cancel()

            timer = Timer(self._debounce_interval, self._fire_if_idle)
            timer.args = (timer,)
            timer.daemon = True
            self.timer = timer
            timer.start()
        logger.debug("Rebuild scheduled in %.3fs", self._debounce_interval)

    def run_initial_build(self):
        """Run one rebuild right away on the calling thread, bypassing the debounce."""
        with self.lock:
            if self.closed:
                return None
            if self.is_rebuilding:
                self.rebuild_queued = True
                self.observer.on_build_queued()
                return None
            self.is_rebuilding = True
        return self._drain()

    def shutdown(self):
        """Cancel any pending rebuild and refuse further work."""
        with self.lock:
            self.closed = True
            self.rebuild_queued = False
            if self.timer:
                self.timer.cancel()
                self.timer = None
        logger.debug("Rebuild scheduler shut down")

    def wait_idle(self, timeout=None):
        """Block until no rebuild is running. Returns False if the timeout expired first."""
        with self.idle:
            return self.idle.wait_for(lambda: not self.is_rebuilding, timeout)

    def _fire_if_idle(self, timer):
        with self.lock:
            # a timer cancelled after it already started must not build
            if timer is not self.timer:
                return
            self.timer = None
            if self.closed:
                return
            if self.is_rebuilding:
                self.rebuild_queued = True
                self.observer.on_build_queued()
                return
            self.is_rebuilding = True
        self._drain()

    def _drain(self):
        # caller holds the busy flag; keep building while follow-ups are queued
        while True:
            try:
                result = self._build_once()
            except BaseException:
                with self.lock:
                    self.is_rebuilding = False
                    self.rebuild_queued = False
                    self.idle.notify_all()
                raise
            with self.lock:
                if self.rebuild_queued and not self.closed and self.timer is None:
                    self.rebuild_queued = False
                    continue
                # an armed timer already covers the queued change
                self.rebuild_queued = False
                self.is_rebuilding = False
                self.idle.notify_all()
                return result

    def _build_once(self):
        self.observer.on_build_start()
        try:
            result = self.rebuild_callback(self._options)
        except Exception as e:
            self.last_result = False
            self.observer.on_build_failure(e)
            return False

        if result is False:
            self.last_result = False
            self.observer.on_build_failure()
            return False

        self.last_result = True
        self.last_build_at = time.time()
        self.observer.on_build_success(self.last_build_at)
        return True
