"""Error type raised for SSH protocol failures."""


class SshError(Exception):
    """Raised when the peer violates the protocol or negotiation fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message