"""
Exception hierarchy for the relay arbitrage bot.

Each class marks how far an error may travel: transient source errors
stay inside the scanner, execution errors stay inside the executor,
startup and control-conflict errors reach the caller.
"""


class RelayArbError(Exception):
    """Base exception for all bot errors."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class TransientSourceError(RelayArbError):
    """Quote source unavailable, timed out or returned garbage."""

    pass


class ExecutionError(RelayArbError):
    """A trade step failed (swap build, signing, relay, confirmation)."""

    pass


class RelayError(ExecutionError):
    """The transaction relay rejected a request or could not be reached."""

    pass


class FatalStartupError(RelayArbError):
    """Pre-flight failure: missing or invalid key, insufficient balance."""

    pass


class ControlConflictError(RelayArbError):
    """Start while running, or stop while stopped."""

    pass


class LedgerError(RelayArbError):
    """The persistent store failed to read or write."""

    pass
