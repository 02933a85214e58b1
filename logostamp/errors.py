# logostamp/errors.py
# Exception taxonomy. Fatal errors stop a run before the batch loop starts,
# per-file errors are caught by the batch controller and turned into skips.

from __future__ import annotations


class LogoStampError(Exception):
    """Base class for every error raised by logostamp."""


class InvalidInput(LogoStampError, ValueError):
    """A geometry input, setting or enum value is out of range."""


class FatalPrecondition(LogoStampError):
    """Engine, input root, logo or output root unusable. Aborts the run."""


class PerFileIOError(LogoStampError, OSError):
    """Background unreadable or output directory uncreatable for one file."""


class RenderFailure(LogoStampError, RuntimeError):
    """The engine failed, timed out or produced an invalid file."""


class ConfigError(LogoStampError):
    """Configuration file unreadable or malformed."""
