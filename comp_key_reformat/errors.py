"""Error kinds raised while reformatting a comp-key export."""

from __future__ import annotations


class ReformatError(Exception):
    """Base class for every failure this package raises on purpose."""


class InputNotFound(ReformatError, FileNotFoundError):
    pass


class UnsupportedFormat(ReformatError, ValueError):
    pass


class EmptyInput(ReformatError, ValueError):
    pass


class OutputWriteError(ReformatError, OSError):
    pass


class OracleError(ReformatError):
    """The AI mapping could not be obtained or could not be trusted.

    Always recovered by falling back to exact header matching. Messages must
    never carry cell values from the input.
    """
