"""
Line oriented request/response over the standard streams of an external engine process.

One background thread reads the engine's output and hands every line, in arrival order, to the consumer at the head
of a FIFO queue. A consumer keeps receiving lines until it returns False.

A request/response exchange (register consumer -> send command -> wait until the consumer is done) is a critical
section: exchanges on one process never interleave. Waiting is always bounded, and consumers still waiting when the
engine exits are released with an EngineTerminatedError.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Callable, Optional, Sequence

from src.core.config import EngineSettings
from src.core.exceptions import (
    AlreadyRunningError,
    EngineTerminatedError,
    ObjectDisposedError,
    ProcessError,
    ProcessStartError,
    ProtocolTimeoutError,
    ValidationError,
    WriteError,
)

_log = logging.getLogger(__name__)

LineConsumer = Callable[[str], bool]

DEFAULT_RESPONSE_TIMEOUT = 10.0
DEFAULT_SHUTDOWN_TIMEOUT = 2.0
QUIT_COMMAND = "quit"


class PendingRead:
    """A registered consumer, and the signal that it is finished (normally, or with an error)."""

    def __init__(self, consumer: LineConsumer) -> None:
        self.consumer = consumer
        self.error: Optional[BaseException] = None
        self._done = threading.Event()

    def finish(self, error: Optional[BaseException] = None) -> None:
        self.error = error
        self._done.set()

    def wait(self, timeout: Optional[float]) -> bool:
        """True once the consumer is finished, False if the timeout ran out first."""
        return self._done.wait(timeout)

    @property
    def is_done(self) -> bool:
        return self._done.is_set()


class EngineProcess:
    """Owns one engine process, its pipes and the thread reading its output."""

    def __init__(
        self,
        command: str | Path | Sequence[str | Path],
        name: str = "engine",
        response_timeout: float = DEFAULT_RESPONSE_TIMEOUT,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        if isinstance(command, (str, Path)):
            self._command = [str(command)]
        else:
            self._command = [str(part) for part in command]
        if not self._command:
            raise ValidationError("Cannot start an engine without a command line")

        self.name = name
        self.response_timeout = response_timeout
        self.shutdown_timeout = shutdown_timeout

        self._process: Optional[subprocess.Popen[str]] = None
        self._reader: Optional[threading.Thread] = None
        self._pending: deque[PendingRead] = deque()

        # guards the queue and the lifecycle flags. Never held while waiting on the engine.
        self._state_lock = threading.Lock()
        # serializes whole exchanges. Reentrant so helpers can group several exchanges.
        self._exchange_lock = threading.RLock()

        self._terminated = False
        self._disposed = False

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> EngineProcess:
        return cls(
            settings.command_line(),
            name=settings.name,
            response_timeout=settings.response_timeout,
            shutdown_timeout=settings.shutdown_timeout,
        )

    # --- LIFECYCLE ---
    def start(self) -> None:
        """Spawn the process and the reader thread."""
        with self._state_lock:
            self._require_not_disposed()
            if self._process is not None:
                raise AlreadyRunningError(f"Engine process {self.name!r} was already started")

            try:
                self._process = subprocess.Popen(
                    self._command,
                    stdin=subprocess.PIPE,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.DEVNULL,
                    text=True,
                    encoding="utf-8",
                    bufsize=1,
                )
            except OSError as exc:
                raise ProcessStartError(
                    f"Cannot launch engine {self.name!r} with command line {self._command}: {exc}"
                ) from exc

            self._reader = threading.Thread(
                target=self._read_lines, name=f"{self.name}-reader", daemon=True
            )
            self._reader.start()
        _log.info("Engine process started [%s] pid=%s", self.name, self._process.pid)

    def close(self) -> None:
        """Stop the engine and release its pipes. Safe to call more than once.

        Any caller still waiting for a response gets an EngineTerminatedError.
        """
        with self._state_lock:
            if self._disposed:
                return
            self._disposed = True
            process = self._process
            reader = self._reader

        if process is None:
            return

        if process.poll() is None:
            try:
                self._write_line(process, QUIT_COMMAND)
            except (OSError, ValueError):
                _log.debug("Engine [%s] did not accept %r, stopping it anyway", self.name, QUIT_COMMAND)
            try:
                process.wait(timeout=self.shutdown_timeout)
            except subprocess.TimeoutExpired:
                _log.warning("Engine [%s] ignored %r, killing it", self.name, QUIT_COMMAND)
                process.kill()
                process.wait()

        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=self.shutdown_timeout)

        if process.stdin is not None:
            try:
                process.stdin.close()
            except OSError:
                _log.debug("stdin of engine [%s] was already broken", self.name)
        if process.stdout is not None and (reader is None or not reader.is_alive()):
            process.stdout.close()

        self._on_terminated()
        _log.info("Engine process closed [%s] exit code=%s", self.name, process.returncode)

    def dispose(self) -> None:
        self.close()

    def __enter__(self) -> EngineProcess:
        if self._process is None:
            self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def is_running(self) -> bool:
        return (
            self._process is not None
            and not self._disposed
            and not self._terminated
            and self._process.poll() is None
        )

    # --- PRIMITIVES ---
    def send(self, command: str) -> None:
        """Write one command line to the engine and flush it."""
        if "\n" in command or "\r" in command:
            raise ValidationError(f"A command has to fit on a single line: {command!r}")

        with self._exchange_lock:
            process = self._require_started()
            try:
                self._write_line(process, command)
            except (OSError, ValueError) as exc:
                # BrokenPipeError when the engine died, ValueError when the pipe was closed on our side
                raise WriteError(f"Cannot write to engine [{self.name}]: {exc}") from exc
        _log.debug("Sent command [%s]: %r", self.name, command)

    def read(self, consumer: LineConsumer) -> PendingRead:
        """Queue a consumer for the coming output lines. It is called once per line until it returns False."""
        with self._state_lock:
            self._require_not_disposed()
            if self._terminated:
                raise EngineTerminatedError(f"Engine [{self.name}] is no longer running")
            pending = PendingRead(consumer)
            self._pending.append(pending)
        return pending

    def exchange(
        self, command: str, consumer: LineConsumer, timeout: Optional[float] = None
    ) -> None:
        """
        One full request/response round trip.
        ---

        Blocks until the consumer returns False. Raises:
        * ProtocolTimeoutError when that does not happen in time. The engine's output can no longer be matched
          to requests after that, so the process is closed before raising.
        * EngineTerminatedError when the engine exits first.
        * whatever the consumer itself raised.
        """
        timeout = self.response_timeout if timeout is None else timeout
        with self._exchange_lock:
            pending = self.read(consumer)
            try:
                self.send(command)
            except ProcessError:
                self._discard(pending)
                raise

            if not pending.wait(timeout):
                self._discard(pending)
                _log.error(
                    "Engine [%s] gave no complete response to %r within %.2fs, closing it",
                    self.name,
                    command,
                    timeout,
                )
                self.close()
                raise ProtocolTimeoutError(
                    f"Engine [{self.name}] did not answer {command!r} within {timeout} seconds"
                )

        if pending.error is not None:
            raise pending.error

    def exclusive(self) -> threading.RLock:
        """Lock to hold when several exchanges have to happen without another caller in between"""
        return self._exchange_lock

    # --- READER THREAD ---
    def _read_lines(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout
        try:
            for raw_line in stdout:
                self._deliver(raw_line.rstrip("\r\n"))
        except (OSError, ValueError) as exc:
            _log.debug("Reading from engine [%s] stopped: %s", self.name, exc)
        finally:
            self._on_terminated()

    def _deliver(self, line: str) -> None:
        _log.debug("Read line [%s]: %r", self.name, line)
        with self._state_lock:
            pending = self._pending[0] if self._pending else None
        if pending is None:
            return

        try:
            wants_more = pending.consumer(line)
        except Exception as exc:
            # handed over to the waiting caller, which re-raises it
            self._finish(pending, exc)
            return
        if not wants_more:
            self._finish(pending)

    def _finish(self, pending: PendingRead, error: Optional[BaseException] = None) -> None:
        with self._state_lock:
            if self._pending and self._pending[0] is pending:
                self._pending.popleft()
        pending.finish(error)

    def _discard(self, pending: PendingRead) -> None:
        with self._state_lock:
            if pending in self._pending:
                self._pending.remove(pending)

    def _on_terminated(self) -> None:
        with self._state_lock:
            self._terminated = True
            stranded = list(self._pending)
            self._pending.clear()

        if stranded:
            _log.warning(
                "Engine [%s] terminated with %d consumer(s) still waiting", self.name, len(stranded)
            )
        for pending in stranded:
            pending.finish(EngineTerminatedError(f"Engine [{self.name}] terminated before answering"))

    # --- HELPERS ---
    def _write_line(self, process: subprocess.Popen[str], line: str) -> None:
        assert process.stdin is not None
        process.stdin.write(line + "\n")
        process.stdin.flush()

    def _require_not_disposed(self) -> None:
        if self._disposed:
            raise ObjectDisposedError(f"Engine process {self.name!r} has been disposed")

    def _require_started(self) -> subprocess.Popen[str]:
        self._require_not_disposed()
        if self._process is None:
            raise ProcessError(f"Engine process {self.name!r} has not been started")
        return self._process
