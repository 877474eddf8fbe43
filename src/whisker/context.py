"""Render contexts and name resolution.

A render walks the segment tree with a stack of Context frames. Each frame
holds the data value in scope plus its position inside an enclosing
iteration, and points back at the frame it was nested from.

Name lookup tries the innermost frame first and, unless standards mode is
enabled, falls back to enclosing frames until the chain is exhausted.
Unresolved names produce the MISSING sentinel, which is distinct from a
resolved None.
"""

import inspect
from collections.abc import Callable, Iterable, Iterator, Mapping, Sized
from dataclasses import dataclass
from enum import Enum
from numbers import Number
from typing import Any

# Names with special meaning inside a frame
THIS_NAMES = frozenset({".", "this"})
FIRST_NAME = "-first"
LAST_NAME = "-last"
INDEX_NAME = "-index"


class _Missing:
    """Sentinel type for names that did not resolve."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

_END = object()


class Position(Enum):
    """Position of a frame within an iteration."""

    FIRST = "first"
    OTHER = "other"
    LAST = "last"


class ValueKind(Enum):
    """How a resolved value behaves when rendered."""

    MISSING = "missing"
    NULL = "null"
    BOOLEAN = "boolean"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    OBJECT = "object"
    SCALAR = "scalar"


@dataclass(frozen=True)
class Context:
    """One frame of the render-time context stack.

    Attributes:
        data: Value in scope for this frame
        index: 1-based index inside an iteration, 0 otherwise
        position: Position inside an iteration (OTHER outside of one)
        parent: Enclosing frame, None for the root
        last: True for the final element of an iteration. A one-element
            sequence is FIRST by position and last at the same time.
    """

    data: Any
    index: int = 0
    position: Position = Position.OTHER
    parent: "Context | None" = None
    last: bool = False

    def nest(
        self,
        data: Any,
        index: int = 0,
        position: Position = Position.OTHER,
        last: bool = False,
    ) -> "Context":
        """Create a child frame for a section body."""
        return Context(data=data, index=index, position=position, parent=self, last=last)


# =============================================================================
# Sequence adapters
# =============================================================================


class SequenceAdapterRegistry:
    """Registry of host types that render as ordered sequences.

    Built-in iterables are handled without registration. Types that do not
    implement the iteration protocol (or that should not be treated as a
    mapping or object) register an adapter producing their elements:

        registry.register(JSONArray, lambda arr: (arr.opt(i) for i in range(arr.length())))
    """

    def __init__(self) -> None:
        self._adapters: dict[type, Callable[[Any], Iterable[Any]]] = {}

    def register(self, value_type: type, adapter: Callable[[Any], Iterable[Any]] = iter) -> None:
        """Register a type as an ordered sequence.

        Args:
            value_type: Type (instances of subclasses match too)
            adapter: Callable returning an iterable over a value's elements
        """
        self._adapters[value_type] = adapter

    def unregister(self, value_type: type) -> None:
        """Remove a registered type (no-op if absent)."""
        self._adapters.pop(value_type, None)

    def adapter_for(self, value: Any) -> Callable[[Any], Iterable[Any]] | None:
        """Return the adapter for a value, if its type is registered."""
        for value_type, adapter in self._adapters.items():
            if isinstance(value, value_type):
                return adapter
        return None

    def registered_types(self) -> list[type]:
        """Get list of registered types."""
        return list(self._adapters.keys())


_registry = SequenceAdapterRegistry()


def get_sequence_registry() -> SequenceAdapterRegistry:
    """Get the global sequence adapter registry."""
    return _registry


def register_sequence_type(
    value_type: type,
    adapter: Callable[[Any], Iterable[Any]] = iter,
) -> None:
    """Register a host type as an ordered sequence in the global registry."""
    _registry.register(value_type, adapter)


# =============================================================================
# Value classification
# =============================================================================


def classify(value: Any) -> ValueKind:
    """Classify a resolved value.

    Order matters: strings are iterable but render as scalars, and mappings
    are iterable but render as structured objects.
    """
    if value is MISSING:
        return ValueKind.MISSING
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if _registry.adapter_for(value) is not None:
        return ValueKind.SEQUENCE
    if isinstance(value, (str, bytes, bytearray, Number)):
        return ValueKind.SCALAR
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, Iterable):
        return ValueKind.SEQUENCE
    if hasattr(value, "__dict__") or hasattr(type(value), "__slots__"):
        return ValueKind.OBJECT
    return ValueKind.SCALAR


def iter_elements(value: Any) -> Iterator[Any]:
    """Iterate over the elements of a sequence value."""
    adapter = _registry.adapter_for(value)
    if adapter is not None:
        return iter(adapter(value))
    return iter(value)


def iter_positions(value: Any) -> Iterator[tuple[int, Position, bool, Any]]:
    """Iterate a sequence yielding (index, position, last, element).

    Index is 1-based. The first element is FIRST, the element with no
    successor is LAST, all others are OTHER. One element of look-ahead is
    kept so sequences of unknown length (generators) work.
    """
    elements = iter_elements(value)
    current = next(elements, _END)
    index = 0
    while current is not _END:
        following = next(elements, _END)
        index += 1
        if index == 1:
            position = Position.FIRST
        elif following is _END:
            position = Position.LAST
        else:
            position = Position.OTHER
        yield index, position, following is _END, current
        current = following


def is_empty_sequence(value: Any) -> bool:
    """Check whether a sequence value has no elements.

    Sized values are checked by length; other iterables are probed, which
    consumes one element of a one-shot iterator.
    """
    if _registry.adapter_for(value) is None and isinstance(value, Sized):
        return len(value) == 0
    return next(iter_elements(value), _END) is _END


def is_falsy(value: Any) -> bool:
    """Return True when an inverted section should render for this value."""
    kind = classify(value)
    if kind in (ValueKind.MISSING, ValueKind.NULL):
        return True
    if kind is ValueKind.BOOLEAN:
        return not value
    if kind is ValueKind.SEQUENCE:
        return is_empty_sequence(value)
    return False


# =============================================================================
# Name resolution
# =============================================================================


def _takes_no_arguments(member: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(member)
    except (TypeError, ValueError):
        return False
    return all(
        param.default is not inspect.Parameter.empty
        or param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for param in signature.parameters.values()
    )


def lookup(value: Any, name: str) -> Any:
    """Resolve a single name against a single value.

    Mappings are searched by key. Other values expose public attributes;
    methods and functions (bound, static or stored on the instance) taking
    no arguments are called and their result used.

    Returns:
        The resolved value (possibly None), or MISSING
    """
    if value is None or value is MISSING:
        return MISSING

    if isinstance(value, Mapping):
        return value[name] if name in value else MISSING

    if not name or name.startswith("_"):
        return MISSING

    member = getattr(value, name, MISSING)
    if member is MISSING:
        return MISSING

    if inspect.isroutine(member):
        return member() if _takes_no_arguments(member) else MISSING

    return member


def _lookup_in_chain(ctx: Context, name: str, standards_mode: bool) -> Any:
    frame: Context | None = ctx
    while frame is not None:
        value = lookup(frame.data, name)
        if value is not MISSING:
            return value
        if standards_mode:
            break
        frame = frame.parent
    return MISSING


def resolve(ctx: Context, name: str, standards_mode: bool = False) -> Any:
    """Resolve a tag name against a context stack.

    Args:
        ctx: Innermost frame
        name: Tag name, possibly dotted (`user.address.city`)
        standards_mode: Disable lookups in enclosing frames

    Returns:
        Resolved value, or MISSING
    """
    if name in THIS_NAMES:
        return ctx.data
    if name == FIRST_NAME:
        return ctx.position is Position.FIRST
    if name == LAST_NAME:
        return ctx.last
    if name == INDEX_NAME:
        return ctx.index

    if "." not in name:
        return _lookup_in_chain(ctx, name, standards_mode)

    head, *rest = name.split(".")
    value = _lookup_in_chain(ctx, head, standards_mode)
    for component in rest:
        if value is MISSING:
            break
        value = lookup(value, component)
    return value
