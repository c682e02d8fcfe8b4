"""
VNC authentication probe.

Implements IAuthProbe: one fresh TCP connection per candidate, one RFB
handshake up to the security result, then the connection is dropped.
"""

import socket
import struct
import time
from typing import Optional

from vncbrute.core.interfaces import IAuthProbe, AttemptResult, AttemptOutcome
from vncbrute.core.exceptions import (
    HandshakeError, UnsupportedSecurityTypeError, ConnectionFailedException
)
from vncbrute.services.key_derivation import encrypt_challenge, CHALLENGE_LENGTH
from vncbrute.utils.logger import Logger


VERSION_LENGTH = 12
SECURITY_TYPE_VNC_AUTH = 0x02
STATUS_LENGTH = 4


class VncAuthProbe(IAuthProbe):
    """
    Tests one password per connection against a VNC server.

    Handshake:
    1. Read the 12-byte version banner and echo it back verbatim
    2. Read the offered security types, require type 2
    3. Select type 2 and read the 16-byte challenge
    4. Send the DES-encrypted challenge
    5. Read the 4-byte security result (0 = OK)

    Network and protocol problems never raise out of attempt(); they come
    back as CONNECTION_ERROR so a worker can just move on.

    Example:
        >>> probe = VncAuthProbe("10.0.0.5", 5900, timeout=3)
        >>> probe.attempt("hunter2").outcome
        <AttemptOutcome.FAILURE: 'failure'>
    """

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float = 3.0,
        logger: Optional[Logger] = None
    ):
        """
        Initialize probe.

        Args:
            host: Target host name or address
            port: Target TCP port
            timeout: Connect and per-operation socket timeout in seconds
            logger: Optional logger instance
        """
        self.host = host
        self.port = int(port)
        self.timeout = timeout
        self.logger = logger or Logger(name="VncAuthProbe", console=False)

    def attempt(self, password: str, timeout: Optional[float] = None) -> AttemptResult:
        """
        Run one authentication handshake.

        Args:
            password: Candidate password
            timeout: Overrides the constructor timeout for this attempt

        Returns:
            AttemptResult with SUCCESS, FAILURE or CONNECTION_ERROR
        """
        start_time = time.perf_counter()
        timeout = self.timeout if timeout is None else timeout

        try:
            with socket.create_connection(
                (self.host, self.port), timeout=timeout
            ) as sock:
                sock.settimeout(timeout)
                status = self._handshake(sock, password)
        except ConnectionFailedException as e:
            return self._result(password, AttemptOutcome.CONNECTION_ERROR, start_time, e.reason)
        except OSError as e:
            # refused, reset, timeout and DNS errors all land here
            return self._result(password, AttemptOutcome.CONNECTION_ERROR, start_time, str(e) or type(e).__name__)

        if status[-1] == 0:
            return self._result(password, AttemptOutcome.SUCCESS, start_time)

        code = struct.unpack(">I", status)[0]
        return self._result(
            password, AttemptOutcome.FAILURE, start_time,
            f"authentication rejected (status {code})"
        )

    def _handshake(self, sock: socket.socket, password: str) -> bytes:
        """Drive the handshake and return the raw 4-byte status word."""
        version = self._recv_exact(sock, VERSION_LENGTH)
        sock.sendall(version)

        count = self._recv_exact(sock, 1)[0]
        security_types = self._recv_exact(sock, count) if count else b""
        if SECURITY_TYPE_VNC_AUTH not in security_types:
            raise UnsupportedSecurityTypeError(self.host, self.port, security_types)

        sock.sendall(bytes([SECURITY_TYPE_VNC_AUTH]))
        challenge = self._recv_exact(sock, CHALLENGE_LENGTH)
        sock.sendall(encrypt_challenge(challenge, password))

        return self._recv_exact(sock, STATUS_LENGTH)

    def _recv_exact(self, sock: socket.socket, size: int) -> bytes:
        """Read exactly `size` bytes or raise HandshakeError."""
        buffer = bytearray()
        while len(buffer) < size:
            chunk = sock.recv(size - len(buffer))
            if not chunk:
                raise HandshakeError(
                    self.host, self.port,
                    f"connection closed after {len(buffer)}/{size} bytes"
                )
            buffer.extend(chunk)
        return bytes(buffer)

    def _result(
        self,
        password: str,
        outcome: AttemptOutcome,
        start_time: float,
        reason: Optional[str] = None
    ) -> AttemptResult:
        elapsed_time = time.perf_counter() - start_time
        self.logger.debug(
            f"Attempt: password='{password}', outcome={outcome.value}, "
            f"time={elapsed_time:.3f}s" + (f", reason={reason}" if reason else "")
        )
        return AttemptResult(
            password=password,
            outcome=outcome,
            elapsed_time=elapsed_time,
            reason=reason
        )
