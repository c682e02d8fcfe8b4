"""
Wordlist reader producing candidate passwords.

Implements ICredentialSource over a newline separated text file.
"""

import threading
from pathlib import Path
from typing import Iterator, Optional

from vncbrute.core.interfaces import ICredentialSource
from vncbrute.core.exceptions import ConfigurationError


class CredentialSource(ICredentialSource):
    """
    Lazy, cancellable stream of passwords from a wordlist file.

    Lines are trimmed and blank lines skipped. The file is decoded as
    latin-1 by default so every byte maps to exactly one character and
    the password bytes sent on the wire match the file.

    Example:
        >>> source = CredentialSource("rockyou.txt")
        >>> source.count()
        14344391
        >>> next(source.stream())
        '123456'
    """

    def __init__(self, path: str, encoding: str = "latin-1"):
        self.path = Path(path)
        self.encoding = encoding

    def validate(self) -> None:
        """
        Check the wordlist can be opened.

        Raises:
            ConfigurationError: If the file is missing or unreadable
        """
        if not self.path.is_file():
            raise ConfigurationError(f"Password file not found: {self.path}")
        try:
            with open(self.path, 'r', encoding=self.encoding) as f:
                f.read(1)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Failed to read password file {self.path}: {e}")

    def count(self) -> int:
        """Number of non-blank lines, i.e. candidates the stream will yield."""
        try:
            with open(self.path, 'r', encoding=self.encoding) as f:
                return sum(1 for line in f if line.strip())
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Failed to read password file {self.path}: {e}")

    def stream(self, cancel_event: Optional[threading.Event] = None) -> Iterator[str]:
        """
        Yield trimmed, non-blank lines in file order.

        Args:
            cancel_event: Checked before every yield; once set the
                generator returns quietly

        Yields:
            Candidate passwords
        """
        with open(self.path, 'r', encoding=self.encoding) as f:
            for line in f:
                if cancel_event is not None and cancel_event.is_set():
                    return
                password = line.strip()
                if not password:
                    continue
                yield password
