"""Interactive MFA code prompt."""

import getpass
import logging
import sys
from dataclasses import dataclass
from typing import Callable, Optional, TextIO

from .exceptions import MfaPromptIOError, NotATtyError

logger = logging.getLogger(__name__)

MFA_PROMPT = "Enter MFA code for {serial}: "


@dataclass(frozen=True)
class MfaToken:
    """MFA code typed by the user."""
    value: str

    def __repr__(self) -> str:
        return "MfaToken(value='***')"


class StdinMfaTokenProvider:
    """Reads MFA codes from an interactive terminal with echo disabled."""

    def __init__(self, stdin: Optional[TextIO] = None,
                 reader: Optional[Callable[[str], str]] = None):
        """
        Initialize the provider.

        Args:
            stdin: Stream checked for interactivity (defaults to sys.stdin)
            reader: Masked line reader taking the prompt text (defaults to getpass.getpass)
        """
        self._stdin = stdin
        self._reader = reader if reader is not None else getpass.getpass

    @property
    def stdin(self) -> Optional[TextIO]:
        """Stream the prompt reads from."""
        return self._stdin if self._stdin is not None else sys.stdin

    def fetch(self, serial: str) -> MfaToken:
        """
        Prompt for the MFA code of the given device.

        Args:
            serial: MFA device serial number or ARN

        Returns:
            MfaToken holding the entered code

        Raises:
            NotATtyError: If stdin is not an interactive terminal
            MfaPromptIOError: If reading from the terminal fails
        """
        return self._read(MFA_PROMPT.format(serial=serial))

    def __call__(self, prompt: str) -> str:
        """Prompter hook used by botocore's assume-role provider."""
        return self._read(prompt).value

    def _read(self, prompt: str) -> MfaToken:
        if not self._is_interactive():
            raise NotATtyError("stdin is not a tty; cannot read MFA token input")

        logger.debug("Prompting for MFA code")
        try:
            code = self._reader(prompt)
        except (OSError, EOFError) as e:
            raise MfaPromptIOError(f"Failed to read MFA code: {str(e) or type(e).__name__}") from e

        # getpass already strips the terminator; other readers may not
        return MfaToken(code.rstrip("\r\n"))

    def _is_interactive(self) -> bool:
        stream = self.stdin
        if stream is None:
            return False
        try:
            return stream.isatty()
        except (AttributeError, ValueError):
            # ValueError: I/O operation on closed file
            return False
