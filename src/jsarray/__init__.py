"""A JavaScript-style array: sparse keys, a JS-like ``length`` and JS mutation methods.

See README.md for complete documentation and usage examples.
"""

from jsarray.exceptions import InvalidArgumentError, JsArrayError, KeyNotFoundError
from jsarray.jsarray import EMPTY, jsarray
from jsarray.log import set_logger

__all__ = ["EMPTY", "InvalidArgumentError", "JsArrayError", "KeyNotFoundError", "jsarray", "set_logger"]
