"""Grid engine exception taxonomy and tolerated-failure helpers."""

from __future__ import annotations

import logging
from typing import TypeAlias

# Bounded set of exceptions tolerated at render-surface call sites.
RecoverableRenderErrors: TypeAlias = tuple[type[BaseException], ...]
RECOVERABLE_RENDER_ERRORS: RecoverableRenderErrors = (
    RuntimeError,
    OSError,
    ValueError,
    TypeError,
    AttributeError,
    LookupError,
)


class GridEngineError(Exception):
    """Base class for grid engine failures."""


class GridInputError(GridEngineError, ValueError):
    """Invalid surface or dimensions. Never retried."""


class TransientRenderError(GridEngineError, RuntimeError):
    """A single attach/detach against the surface failed."""


class GridContractError(GridEngineError, RuntimeError):
    """Engine API used out of order, e.g. repairing a layer never created."""


class UnrecoverableGridFailure(GridEngineError):
    """Every fallback tier failed to produce a visible grid."""


class RetryExhaustedError(GridEngineError):
    """Raised when a retry loop runs out of attempts."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"operation failed after {attempts} attempts: {last_error!r}")
        self.attempts = attempts
        self.last_error = last_error


def log_recoverable(
    logger: logging.Logger,
    message: str,
    *,
    level: int = logging.DEBUG,
) -> None:
    """Log a tolerated surface or sink failure together with its traceback."""
    logger.log(level, message, exc_info=True)
