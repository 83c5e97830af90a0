class JsArrayError(Exception):
    """Base class for errors raised by jsarray."""


class InvalidArgumentError(JsArrayError, TypeError, ValueError):
    """Raised when an operation receives a malformed argument.

    Subclasses both TypeError and ValueError, so callers written against the
    builtin containers keep catching what they expect.
    """


class KeyNotFoundError(JsArrayError, KeyError):
    """Raised when reading a key that is not present."""
