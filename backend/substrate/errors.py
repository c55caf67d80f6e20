"""
Substrate Exceptions
====================

Only programmer errors raise. Degenerate input is data, not failure:
it comes back as a tagged substrate (see builders.substrate_builder).

Usage:
    from substrate.errors import InvalidParamsError

    try:
        params = SubstrateParams(k=0)
    except InvalidParamsError as e:
        ...
"""


class SubstrateError(Exception):
    """Base class for all substrate errors."""
    pass


class InvalidParamsError(SubstrateError, ValueError):
    """Raised when a parameter object is constructed with invalid values."""
    pass


class InputValidationError(SubstrateError, ValueError):
    """Raised when a boundary payload cannot be coerced into input records."""
    pass
