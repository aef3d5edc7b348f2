"""Log sanitization for commands that carry secrets on their argument list.

openssl receives the deployment key and IV as plain arguments, so any
command echoed to the log or embedded in an error message must be masked
first.

Security Controls:
- Values following secret-bearing flags are masked
- Registered secret values are masked wherever they appear
- Error output is masked before it reaches an exception message
"""

from collections.abc import Iterable
from typing import ClassVar


class LogSanitizer:
    """Sanitize sensitive data from logged commands and error messages.

    All methods are class methods and can be called without instantiation.
    """

    MASKED = "****"

    # Flags whose following argument is a secret
    SECRET_FLAGS: ClassVar[frozenset[str]] = frozenset({"-K", "-iv", "-k", "-pass"})

    @classmethod
    def sanitize_command(cls, cmd: list[str], secrets: Iterable[str] = ()) -> str:
        """Render a command for logging with secret arguments masked.

        Args:
            cmd: Command and arguments
            secrets: Additional literal values to mask

        Returns:
            str: Space separated, masked command line

        Example:
            >>> LogSanitizer.sanitize_command(["openssl", "aes-256-cbc", "-K", "abc"])
            'openssl aes-256-cbc -K ****'
        """
        masked: list[str] = []
        mask_next = False
        for arg in cmd:
            if mask_next:
                masked.append(cls.MASKED)
                mask_next = False
                continue
            masked.append(arg)
            if arg in cls.SECRET_FLAGS:
                mask_next = True
        return cls.sanitize(" ".join(masked), secrets)

    @classmethod
    def sanitize(cls, message: str, secrets: Iterable[str] = ()) -> str:
        """Mask every occurrence of the given secret values in a message."""
        if not message:
            return message
        for secret in secrets:
            if secret:
                message = message.replace(secret, cls.MASKED)
        return message


__all__ = ["LogSanitizer"]
