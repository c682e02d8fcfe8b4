"""
Abstract interfaces and data model for the VNC brute force system.

Concrete probes, credential sources and loggers are injected into the
scheduler through these contracts, so tests can swap in fakes.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional


class AttemptOutcome(Enum):
    """Terminal state of one authentication attempt."""
    SUCCESS = "success"
    FAILURE = "failure"
    CONNECTION_ERROR = "connection_error"


@dataclass
class AttemptResult:
    """
    Result of testing a single candidate password.

    Attributes:
        password: The candidate that was tested
        outcome: Success, failure (wrong password) or connection error
        elapsed_time: Wall time of the attempt in seconds
        reason: Diagnostic text for failures and connection errors
    """
    password: str
    outcome: AttemptOutcome
    elapsed_time: float = 0.0
    reason: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS


@dataclass(frozen=True)
class ProgressSnapshot:
    """
    Point-in-time copy of the run counters.

    Attributes:
        completed: Attempts that finished without success
        total: Number of candidates in the wordlist
        failures: Attempts rejected by the server
        connection_errors: Attempts that never got a verdict
        elapsed: Seconds since the tracker started
    """
    completed: int
    total: int
    failures: int
    connection_errors: int
    elapsed: float


@dataclass
class RunResult:
    """Final outcome of one brute force run."""
    password: Optional[str]
    completed: int
    total: int
    failures: int
    connection_errors: int
    elapsed: float

    @property
    def found(self) -> bool:
        return self.password is not None


class IAuthProbe(ABC):
    """
    Interface for a single authentication attempt.

    Implementations open a fresh connection per call and never raise for
    network or protocol problems; those come back as CONNECTION_ERROR.
    """

    @abstractmethod
    def attempt(self, password: str, timeout: Optional[float] = None) -> AttemptResult:
        """
        Run one full handshake with the given password.

        Args:
            password: Candidate password
            timeout: Socket timeout for this attempt; the probe default when None

        Returns:
            AttemptResult describing the outcome
        """
        pass


class ICredentialSource(ABC):
    """Interface for an ordered, cancellable stream of candidate passwords."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of candidates the stream will produce."""
        pass

    @abstractmethod
    def stream(self, cancel_event: Optional[threading.Event] = None) -> Iterator[str]:
        """
        Yield candidates in source order.

        Args:
            cancel_event: When set, the stream stops without raising
        """
        pass


class ILogger(ABC):
    """Interface for logging functionality."""

    @abstractmethod
    def debug(self, message: str) -> None:
        """Log debug message."""
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        """Log info message."""
        pass

    @abstractmethod
    def warning(self, message: str) -> None:
        """Log warning message."""
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        """Log error message."""
        pass
