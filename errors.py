from typing import Optional


class ProblemReadError(Exception):
    """Base class for everything that can go wrong reading a CSC problem."""

    def __init__(self, message: str, source: Optional[str] = None, block: Optional[str] = None):
        self.message = message
        self.source = source
        self.block = block
        super().__init__(str(self))

    def __str__(self) -> str:
        prefix = ""
        if self.source:
            prefix += f"{self.source}: "
        if self.block:
            prefix += f"[{self.block}] "
        return f"{prefix}{self.message}"

    def with_context(self, source: Optional[str] = None, block: Optional[str] = None) -> "ProblemReadError":
        """Fill in source/block if they were not known where the error was raised."""
        if self.source is None:
            self.source = source
        if self.block is None:
            self.block = block
        self.args = (str(self),)
        return self


class ProblemIOError(ProblemReadError):
    """The input file could not be opened or read."""


class FormatError(ProblemReadError):
    """A literal token or declared count does not match what the format expects."""


class TruncatedInputError(FormatError):
    """The input ended before every expected token of a block was read."""


class StructuralValidationError(ProblemReadError):
    """Decoded arrays violate a CSC invariant."""


class SolverError(Exception):
    """HiGHS refused the lowered model."""
