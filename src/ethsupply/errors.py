"""Exceptions raised by the supply engine."""


class InvalidInputError(ValueError):
    """Input violates a precondition of the engine (empty series, bad ordering, ...)."""


class DegenerateInputError(InvalidInputError):
    """Input would force a division by zero or another NaN/Infinity result."""
