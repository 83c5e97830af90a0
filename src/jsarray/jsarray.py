from __future__ import annotations

import json
import math
from collections.abc import Mapping, MutableSequence, Sequence
from functools import cmp_to_key
from operator import index as op_index
from typing import TYPE_CHECKING, Generic, TypeAlias, TypeVar

from jsarray.exceptions import InvalidArgumentError, KeyNotFoundError
from jsarray.log import logger

if TYPE_CHECKING:
    import sys
    from collections.abc import Callable, Hashable, Iterable, Iterator
    from typing import Any, SupportsIndex

    if sys.version_info < (3, 11):
        from typing_extensions import Self
    else:
        from typing import Self

T = TypeVar("T")


class _Empty:
    """Marker held by a slot that exists but was never given a value."""

    _instance: _Empty | None = None

    def __new__(cls) -> _Empty:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<empty>"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        # Pickled by reference to the module-level singleton
        return "EMPTY"


EMPTY = _Empty()

MaybeEmpty: TypeAlias = T | _Empty


def _is_index(key: object) -> bool:
    """Return True if a canonical key is an array index (a non-negative int)."""
    return isinstance(key, int) and key >= 0


def _canonical_key(key: object) -> Hashable:
    """Normalize a key the way JavaScript normalizes property names.

    Integers (and objects supporting ``__index__``), integral floats and
    canonical decimal strings such as ``"12"`` all become ``int`` keys. Any
    other hashable is kept as a property key.

    Raises:
        InvalidArgumentError: If key is a bool, a non-integral float, or unhashable
    """
    if isinstance(key, bool):
        raise InvalidArgumentError("array keys cannot be booleans")
    if isinstance(key, float):
        if not key.is_integer():
            raise InvalidArgumentError(f"array keys cannot be non-integral floats: {key!r}")
        return int(key)
    if isinstance(key, str):
        if key.isascii() and key.isdigit() and (key == "0" or key[0] != "0"):
            return int(key)
        return key
    if hasattr(type(key), "__index__"):
        return int(op_index(key))  # type: ignore[call-overload]
    try:
        hash(key)
    except TypeError:
        raise InvalidArgumentError(f"unhashable array key: {type(key).__name__!r}") from None
    return key  # type: ignore[return-value]


def _to_position(value: SupportsIndex, name: str) -> int:
    try:
        return op_index(value)
    except TypeError:
        raise InvalidArgumentError(f"{name} must be an integer") from None


def _relative_position(value: SupportsIndex, size: int, name: str) -> int:
    """Resolve a possibly negative position against size, clamped to [0, size]."""
    position = _to_position(value, name)
    if position < 0:
        return max(size + position, 0)
    return min(position, size)


def _is_size(arg: object) -> bool:
    return isinstance(arg, int) and not isinstance(arg, bool) and arg >= 0


def _is_array_like(arg: object) -> bool:
    if isinstance(arg, (Mapping, jsarray)):
        return True
    return isinstance(arg, Sequence) and not isinstance(arg, (str, bytes, bytearray))


def _copy_entries(source: Any) -> dict[Hashable, Any]:
    """Copy an array-like into a fresh key -> value dict."""
    if isinstance(source, jsarray):
        return dict(source._entries)
    if isinstance(source, Mapping):
        return {_canonical_key(key): value for key, value in source.items()}
    return dict(enumerate(source))


def _sort_string(value: object) -> str:
    """Convert a value to the string JavaScript's default sort compares."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, jsarray):
        value = value._dense_view()
    if isinstance(value, (list, tuple)):
        # Array join renders null and missing items as empty strings
        return ",".join("" if item is None or item is EMPTY else _sort_string(item) for item in value)
    return str(value)


def _comparison(result: Any) -> int:
    try:
        return (result > 0) - (result < 0)
    except TypeError:
        raise InvalidArgumentError(f"comparator must return a number, not {type(result).__name__}") from None


def _json_default(obj: object) -> Any:
    if obj is EMPTY:
        return None
    if isinstance(obj, jsarray):
        return obj._json_payload()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class jsarray(Generic[T]):  # noqa: N801
    """A JavaScript-style array: sparse keys, a JS-like ``length`` and JS mutation methods.

    Like JavaScript's ``in`` operator, ``key in arr`` tests for a key, while
    iterating yields values. So ``x in arr`` and ``x in list(arr)`` can disagree.
    """

    _entries: dict[Hashable, T]
    _length: int
    _index_count: int
    _top: int

    def __init__(self, *args: Any) -> None:
        """Initialize a jsarray from an argument list, dispatched on its shape.

        Args:
            *args: Initial contents
                  - a single non-negative int n: n slots holding ``EMPTY``
                  - a single mapping, sequence or jsarray: its contents are copied;
                    mapping keys are used as array keys
                  - anything else (no args, several args, one scalar): the
                    arguments themselves become elements 0, 1, 2, etc.

        Raises:
            InvalidArgumentError: If an adopted mapping holds an invalid key
        """
        if len(args) == 1 and _is_size(args[0]):
            logger().debug("jsarray: pre-sizing %d empty slots", args[0])
            self._entries = dict.fromkeys(range(args[0]), EMPTY)  # type: ignore[arg-type]
        elif len(args) == 1 and _is_array_like(args[0]):
            logger().debug("jsarray: adopting %s", type(args[0]).__name__)
            self._entries = _copy_entries(args[0])
        else:
            self._entries = dict(enumerate(args))
        self._rescan()
        self._reconcile_length()

    # ---------------------
    # Construction helpers
    # ---------------------

    @classmethod
    def create(cls, *args: Any) -> Self:
        """Construct a jsarray; identical to calling the class."""
        return cls(*args)

    @classmethod
    def of(cls, *elements: T) -> Self:
        """Construct a dense jsarray holding exactly the given elements.

        Unlike ``jsarray(3)``, ``jsarray.of(3)`` is the one-element array ``[3]``.
        A trailing placeholder keeps a lone int from being read as a size; the
        placeholder slot is removed afterwards.
        """
        instance = cls(*elements, None)
        instance.delete(len(elements))
        instance._reconcile_length()
        return instance

    @classmethod
    def from_(cls, array_like: Iterable[Any] | Mapping[Any, Any], map_fn: Callable[[Any], T] | None = None) -> Self:
        """Construct a jsarray from an existing array-like.

        Args:
            array_like: Mapping, jsarray or any iterable (strings yield characters)
            map_fn: Optional function applied to every value; keys are kept

        Returns:
            New jsarray

        Raises:
            InvalidArgumentError: If array_like is not iterable or map_fn is not callable
        """
        if map_fn is not None and not callable(map_fn):
            raise InvalidArgumentError("map_fn must be callable")

        if _is_array_like(array_like):
            source = _copy_entries(array_like)
        else:
            try:
                iterator = iter(array_like)  # type: ignore[arg-type]
            except TypeError:
                raise InvalidArgumentError(f"{type(array_like).__name__!r} object is not array-like") from None
            source = dict(enumerate(iterator))

        if map_fn is not None:
            source = {key: map_fn(value) for key, value in source.items()}
        return cls(source)

    @staticmethod
    def is_array(obj: object) -> bool:
        """Return True for jsarrays and for objects offering array-style access (lists etc.)."""
        return isinstance(obj, (jsarray, MutableSequence))

    # ---------------------
    # Length
    # ---------------------

    def _index_keys(self) -> list[int]:
        """Return the index keys in ascending order."""
        if self._index_count == self._top + 1:
            # Dense: the keys are exactly 0..top, no need to sort
            return list(range(self._index_count))
        return sorted(key for key in self._entries if _is_index(key))  # type: ignore[misc]

    def _rescan(self) -> None:
        """Recount the index keys and find the highest one with a single pass."""
        count = 0
        top = -1
        for key in self._entries:
            if _is_index(key):
                count += 1
                if key > top:  # type: ignore[operator]
                    top = key  # type: ignore[assignment]
        self._index_count = count
        self._top = top

    def _store(self, key: int, value: T) -> None:
        """Store value at index key, keeping the index count and highest index current."""
        if key not in self._entries:
            self._index_count += 1
            if key > self._top:
                self._top = key
        self._entries[key] = value

    def _discard(self, key: int) -> T:
        """Remove index key and return its value, keeping the index bookkeeping current."""
        value = self._entries.pop(key)
        self._index_count -= 1
        if key == self._top:
            if self._index_count == key:
                # The remaining indices are exactly 0..key-1
                self._top = key - 1
            else:
                self._top = max((k for k in self._entries if _is_index(k)), default=-1)  # type: ignore[type-var]
        return value

    def _reconcile_length(self) -> None:
        """Recompute length from the index keys.

        Dense zero-based keys give the key count. Any other key set gives the
        highest index, the way a JavaScript array's length follows its highest
        assigned index.
        """
        if self._index_count == 0:
            self._length = 0
        elif self._top == self._index_count - 1:
            self._length = self._index_count
        else:
            self._length = self._top

    def _dense_view(self) -> list[T]:
        return [self._entries[key] for key in self._index_keys()]

    def _reindex(self, values: list[T]) -> None:
        """Replace all index keys with values at 0..len(values)-1, keeping property keys."""
        for key in self._index_keys():
            del self._entries[key]
        self._entries.update(enumerate(values))
        self._index_count = len(values)
        self._top = len(values) - 1
        self._reconcile_length()

    def _is_dense(self) -> bool:
        return self._index_count == len(self._entries) and self._top == self._index_count - 1

    @property
    def length(self) -> int:
        """Get or set the JavaScript-style length.

        :getter: Returns the current length.
        :setter: Truncates or extends the array. Truncation removes every index
            key >= the new length; extension adds no keys.

        Raises:
            InvalidArgumentError: If value is not a non-negative integer (when setting)
        """
        return self._length

    @length.setter
    def length(self, new_length: int) -> None:
        """Set the length. See getter for full documentation."""
        if isinstance(new_length, bool) or not isinstance(new_length, int):
            raise InvalidArgumentError("length must be an integer")
        if new_length < 0:
            raise InvalidArgumentError("length must be non-negative")

        if self._top >= new_length:
            doomed = [key for key in self._entries if _is_index(key) and key >= new_length]  # type: ignore[operator]
            logger().debug("jsarray: truncating %d entries at length %d", len(doomed), new_length)
            for key in doomed:
                del self._entries[key]
            self._rescan()
        self._length = new_length

    # ---------------------
    # Index access
    # ---------------------

    def get(self, key: Hashable) -> MaybeEmpty[T]:
        """Return the value stored at key.

        Raises:
            KeyNotFoundError: If key is not present
            InvalidArgumentError: If key is not a valid array key
        """
        canonical = _canonical_key(key)
        try:
            return self._entries[canonical]
        except KeyError:
            raise KeyNotFoundError(key) from None

    def has(self, key: Hashable) -> bool:
        """Return True if key is present, whatever value it holds."""
        return _canonical_key(key) in self._entries

    def set(self, key: Hashable | None, value: T) -> None:
        """Store value at key.

        A ``None`` key appends after the highest index. Storing at index ``k``
        sets length to ``k`` (not ``k + 1``); other keys leave length alone.

        Raises:
            InvalidArgumentError: If key is not a valid array key
        """
        if key is None:
            self._store(self._top + 1, value)
            self._reconcile_length()
            return

        canonical = _canonical_key(key)
        if _is_index(canonical):
            self._store(canonical, value)  # type: ignore[arg-type]
            self._length = canonical  # type: ignore[assignment]
        else:
            self._entries[canonical] = value

    def delete(self, key: Hashable) -> None:
        """Remove key, leaving a hole. Later keys do not shift and length is unchanged."""
        canonical = _canonical_key(key)
        if canonical not in self._entries:
            return
        if _is_index(canonical):
            self._discard(canonical)  # type: ignore[arg-type]
        else:
            del self._entries[canonical]

    def __getitem__(self, key: Hashable) -> MaybeEmpty[T]:
        return self.get(key)

    def __setitem__(self, key: Hashable | None, value: T) -> None:
        self.set(key, value)

    def __delitem__(self, key: Hashable) -> None:
        self.delete(key)

    def __contains__(self, key: object) -> bool:
        return self.has(key)  # type: ignore[arg-type]

    # ---------------------
    # Mutation methods
    # ---------------------

    def push(self, *items: T) -> int:
        """Append items after the highest index, in argument order.

        Returns:
            The new length
        """
        if not items:
            return self._length

        start = self._top + 1
        for offset, item in enumerate(items):
            self._store(start + offset, item)
        self._reconcile_length()
        return self._length

    def pop(self) -> MaybeEmpty[T]:
        """Remove and return the element with the highest index.

        Returns:
            The removed value, or ``EMPTY`` if there are no elements
        """
        if self._index_count == 0:
            return EMPTY
        value = self._discard(self._top)
        self._reconcile_length()
        return value

    def shift(self) -> MaybeEmpty[T]:
        """Remove and return the element with the lowest index.

        The remaining elements are renumbered from 0, keeping their order.

        Returns:
            The removed value, or ``EMPTY`` if there are no elements
        """
        values = self._dense_view()
        if not values:
            return EMPTY
        first = values.pop(0)
        self._reindex(values)
        return first

    def unshift(self, *items: T) -> int:
        """Insert items at the front; the first argument ends up at index 0.

        Returns:
            The new length
        """
        if not items:
            return self._length
        self._reindex([*items, *self._dense_view()])
        return self._length

    def reverse(self) -> Self:
        """Reverse the elements in place, renumbering them from 0.

        Holes are dropped: a sparse array is reversed as the dense sequence of
        its present elements.
        """
        self._reindex(self._dense_view()[::-1])
        return self

    def sort(self, comparator: Callable[[T, T], Any] | None = None) -> Self:
        """Sort the elements in place, renumbering them from 0.

        Args:
            comparator: Optional three-way function; negative puts a first,
                positive puts b first, zero keeps their relative order.
                Without one, elements are ordered by their JavaScript string
                form, so ``10`` sorts before ``9``.

        Returns:
            self

        Raises:
            InvalidArgumentError: If comparator is not callable or returns a non-number

        Note:
            The sort is stable. ``EMPTY`` slots always go last and are never
            passed to the comparator.
        """
        if comparator is not None and not callable(comparator):
            raise InvalidArgumentError("comparator must be callable")

        values = self._dense_view()
        present = [value for value in values if value is not EMPTY]
        holes = len(values) - len(present)

        if comparator is None:
            present.sort(key=_sort_string)
        else:
            present.sort(key=cmp_to_key(lambda a, b: _comparison(comparator(a, b))))

        self._reindex(present + [EMPTY] * holes)  # type: ignore[list-item]
        return self

    def splice(self, start: SupportsIndex, delete_count: SupportsIndex | None = None, *items: T) -> Self:
        """Remove delete_count elements from start and insert items in their place.

        Args:
            start: Position to start at; negative counts from the end, out of
                range values clamp
            delete_count: Number of elements to remove (default None, meaning
                through the end); clamped to what is available
            *items: Elements to insert at start

        Returns:
            New jsarray of the removed elements

        Raises:
            InvalidArgumentError: If start or delete_count is not an integer
        """
        values = self._dense_view()
        begin = _relative_position(start, len(values), "start")
        if delete_count is None:
            count = len(values) - begin
        else:
            count = min(max(_to_position(delete_count, "delete_count"), 0), len(values) - begin)

        removed = values[begin : begin + count]
        values[begin : begin + count] = items
        self._reindex(values)
        return type(self)(removed)

    def copy_within(self, target: SupportsIndex, start: SupportsIndex = 0, end: SupportsIndex | None = None) -> Self:
        """Copy the elements in [start, end) to position target, in place.

        The key set and length never change; copying stops at the last element.
        Overlapping ranges copy as if the source had been read first.

        Returns:
            self

        Raises:
            InvalidArgumentError: If target, start or end is not an integer
        """
        keys = self._index_keys()
        size = len(keys)
        to = _relative_position(target, size, "target")
        begin = _relative_position(start, size, "start")
        stop = size if end is None else _relative_position(end, size, "end")

        count = min(stop - begin, size - to)
        if count <= 0:
            return self

        source = [self._entries[keys[i]] for i in range(begin, begin + count)]
        for offset, value in enumerate(source):
            self._entries[keys[to + offset]] = value
        return self

    def fill(self, value: T, start: SupportsIndex = 0, end: SupportsIndex | None = None) -> Self:
        """Overwrite every element in [start, end) with value.

        Returns:
            self

        Raises:
            InvalidArgumentError: If start or end is not an integer
        """
        keys = self._index_keys()
        begin = _relative_position(start, len(keys), "start")
        stop = len(keys) if end is None else _relative_position(end, len(keys), "end")
        for key in keys[begin:stop]:
            self._entries[key] = value
        return self

    # ---------------------
    # Iteration and counting
    # ---------------------

    def _ordered_keys(self) -> list[Hashable]:
        return [*self._index_keys(), *(key for key in self._entries if not _is_index(key))]

    def keys(self) -> Iterator[Hashable]:
        """Return an iterator over the keys: indices ascending, then property keys."""
        return iter(self._ordered_keys())

    def values(self) -> Iterator[MaybeEmpty[T]]:
        """Return an iterator over the values, in key order."""
        return iter([self._entries[key] for key in self._ordered_keys()])

    def items(self) -> Iterator[tuple[Hashable, MaybeEmpty[T]]]:
        """Return an iterator over (key, value) pairs, in key order.

        The pairs are captured when this method is called; later mutations
        do not affect an iterator already handed out.
        """
        return iter([(key, self._entries[key]) for key in self._ordered_keys()])

    def __iter__(self) -> Iterator[MaybeEmpty[T]]:
        return self.values()

    def __len__(self) -> int:
        """Return the number of present keys (not the length)."""
        return len(self._entries)

    # ---------------------
    # Comparison, copying and representation
    # ---------------------

    def __eq__(self, other: object) -> bool:
        """Return True if self equals other.

        Two jsarrays are equal when they hold the same keys and values and
        report the same length. A list or tuple equals a jsarray that is dense,
        has no property keys and holds the same elements.
        """
        if self is other:
            return True
        if isinstance(other, jsarray):
            return self._length == other._length and self._entries == other._entries
        if isinstance(other, (list, tuple)):
            return self._is_dense() and self._dense_view() == list(other)
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return NotImplemented
        return not result

    def __hash__(self) -> None:  # type: ignore[override]
        """Raise TypeError as jsarrays are not hashable.

        Raises:
            TypeError: Always raised since jsarrays are mutable
        """
        raise TypeError("unhashable type: 'jsarray'")

    def __copy__(self) -> Self:
        """Return a shallow copy with the same entries and length."""
        result = type(self)()
        result._entries = self._entries.copy()
        result._length = self._length
        result._index_count = self._index_count
        result._top = self._top
        return result

    def copy(self) -> Self:
        """Return a shallow copy with the same entries and length."""
        return self.__copy__()

    def __reduce_ex__(self, protocol: SupportsIndex) -> tuple[type[Self], tuple[()], dict[str, Any]]:
        """Return pickle data: an empty jsarray plus its state."""
        return (
            self.__class__,
            (),
            self.__getstate__(),
        )

    def __getstate__(self) -> dict[str, Any]:
        """Return state for pickling."""
        return {
            "entries": self._entries,
            "length": self._length,
        }

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Restore state from pickling."""
        self._entries = state["entries"]
        self._length = state["length"]
        self._rescan()

    def __repr__(self) -> str:
        """Return a string representation of the jsarray.

        Format: *<length>[idx: val, ..., idx: val, 'key': val]*

        - Uses ... for gaps between indices and for a length past the last index
        - Property keys follow the indices
        """
        parts: list[str] = []
        expected = 0
        for key in self._index_keys():
            if key > expected:
                parts.append("...")
            parts.append(f"{key}: {self._entries[key]!r}")
            expected = key + 1
        if self._length > expected:
            parts.append("...")
        parts.extend(f"{key!r}: {value!r}" for key, value in self._entries.items() if not _is_index(key))
        return f"<{self._length}>[{', '.join(parts)}]"

    # ---------------------
    # JSON
    # ---------------------

    def _json_payload(self) -> list[Any] | dict[str, Any]:
        if self._is_dense():
            return self._dense_view()
        payload: dict[str, Any] = {}
        for key, value in self.items():
            if not _is_index(key) and not isinstance(key, str):
                # JSON object keys can only be strings
                raise InvalidArgumentError(f"property key {key!r} has no JSON form")
            payload[str(key)] = value
        return payload

    def to_json(self, indent: int | None = None) -> str:
        """Encode the jsarray as JSON.

        A dense jsarray without property keys becomes a JSON array; anything
        else becomes a JSON object keyed by the stringified keys. ``EMPTY``
        encodes as ``null``.

        Raises:
            InvalidArgumentError: If a value cannot be encoded, or a property key
                is not a string (negative ints, tuples) and would not survive decoding
        """
        try:
            return json.dumps(self._json_payload(), indent=indent, default=_json_default)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"cannot encode jsarray as JSON: {exc}") from None

    @classmethod
    def from_json(cls, text: str | bytes) -> Self:
        """Decode a JSON array or object and construct a jsarray from it.

        Object keys that are canonical integers (``"0"``, ``"5"``) become
        indices, so a sparse jsarray survives a ``to_json`` round trip.

        Raises:
            InvalidArgumentError: If text is not valid JSON or is not an array or object
        """
        try:
            decoded = json.loads(text)
        except (TypeError, ValueError):
            raise InvalidArgumentError("invalid JSON document") from None
        if not isinstance(decoded, (list, dict)):
            raise InvalidArgumentError(f"JSON document must be an array or object, not {type(decoded).__name__}")

        logger().debug("jsarray: decoded JSON %s with %d entries", type(decoded).__name__, len(decoded))
        return cls(decoded)
