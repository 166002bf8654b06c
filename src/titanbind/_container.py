from __future__ import annotations

import dataclasses
import inspect
import logging
import pkgutil
import threading
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
    overload,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Hashable

    T = TypeVar("T")

    Key = type[T] | str | Hashable


class ContainerError(Exception):
    pass


class DuplicateBinding(ContainerError, KeyError):
    pass


class DuplicateAlias(ContainerError, KeyError):
    pass


class UndefinedKey(ContainerError, KeyError):
    pass


class ResolutionError(ContainerError, RuntimeError):
    pass


class InstantiationError(ResolutionError):
    pass


class CyclicDependency(ResolutionError, RecursionError):
    pass


class SpecKind(Enum):
    TYPE = "type"
    VALUE = "value"


@dataclass(frozen=True)
class Binding:
    target: Any  # class, dotted path, or literal value
    kind: SpecKind
    singleton: bool = False


class Resolver(Protocol):
    """Capability requested by constructors that want the container injected."""

    def resolve(self, key: Any, /, *args: Any, **overrides: Any) -> Any: ...


class Container(Resolver):
    """Minimal DI container.

    - bind keys to themselves, optionally as singletons
    - store literal values
    - alias keys to a snapshot of another binding
    - resolve with constructor injection driven by type hints
    - unregistered concrete classes (or dotted paths) resolve on the fly.

    `detect_cycles` tracks the keys currently under construction and raises
    CyclicDependency when one is requested again. The check is per key, so a
    bounded re-entry (a constructor that asks the injected container for its
    own class, e.g. `resolve(Node, depth - 1)`) is reported as a cycle too;
    pass `detect_cycles=False` for such graphs.
    """

    def __init__(self, *, detect_cycles: bool = True) -> None:
        self._bindings: dict[Any, Binding] = {}
        self._aliases: dict[Any, Binding] = {}
        self._instances: dict[Any, object] = {}
        self._resolving: list[Any] = []
        self._detect_cycles = detect_cycles
        self._lock = threading.RLock()

    def bind(self, key: Key[T], singleton: bool = False) -> Container:
        """Register `key` to construct itself.

        Example:
          container.bind(Mailer)
          container.bind("app.services.Mailer", singleton=True)

        """
        with self._lock:
            self._ensure_unbound(key)
            self._bindings[key] = Binding(target=key, kind=SpecKind.TYPE, singleton=bool(singleton))
            logger.debug("Bound %r (singleton=%s)", key, bool(singleton))

        return self

    def singleton(self, key: Key[T]) -> Container:
        return self.bind(key, singleton=True)

    def store(self, key: Key[T], value: object) -> None:
        """Register a literal value; `resolve(key)` hands it back untouched."""
        with self._lock:
            self._ensure_unbound(key)
            self._bindings[key] = Binding(target=value, kind=SpecKind.VALUE)
            logger.debug("Stored value for %r", key)

    def alias(self, alias_key: Key[T], target_key: Key[T] | None = None) -> None:
        """Copy the binding of `target_key` under `alias_key`.

        Without `target_key` the target value of the most recently inserted
        binding is used as the key to copy. Only direct bindings are searched,
        and the copy is a snapshot: later changes to the target entry do not
        reach the alias.
        """
        with self._lock:
            if alias_key in self._aliases:
                msg = f"Duplicate alias for {alias_key!r}"
                raise DuplicateAlias(msg)

            if target_key is None:
                if not self._bindings:
                    msg = f"Cannot alias {alias_key!r}: no bindings registered"
                    raise UndefinedKey(msg)
                target_key = next(reversed(self._bindings.values())).target

            try:
                binding = self._bindings[target_key]
            except (KeyError, TypeError) as e:
                msg = f"Undefined key for alias {alias_key!r}: {target_key!r}"
                raise UndefinedKey(msg) from e

            self._aliases[alias_key] = dataclasses.replace(binding)
            logger.debug("Aliased %r to %r", alias_key, target_key)

    def is_bound(self, key: Key[T]) -> bool:
        return key in self._bindings

    def get(self, key: Key[T]) -> Any:
        """Return the registered target (a class, a path or a literal), not an instance."""
        with self._lock:
            try:
                return self._bindings[key].target
            except (KeyError, TypeError) as e:
                msg = f"Undefined key for {key!r}"
                raise UndefinedKey(msg) from e

    @overload
    def resolve(self, key: type[T], /, *args: Any, **overrides: Any) -> T: ...

    @overload
    def resolve(self, key: str, /, *args: Any, **overrides: Any) -> Any: ...

    def resolve(self, key: Key[T], /, *args: Any, **overrides: Any) -> Any:
        """Resolve the key to an instance (or stored value).

        - Bindings win over aliases; unknown keys are treated as type references.
        - Cached singletons are returned as-is, ignoring `args`/`overrides`.
        - `args` fill leading constructor parameters, `overrides` fill by name;
          the rest are auto-wired from type hints.
        """
        with self._lock:
            binding = self._lookup(key)
            if binding is None:
                binding = Binding(target=key, kind=SpecKind.TYPE)

            if binding.singleton and key in self._instances:
                return self._instances[key]

            if binding.kind is SpecKind.VALUE:
                return binding.target

            if self._detect_cycles and key in self._resolving:
                chain = " -> ".join(_describe(k) for k in (*self._resolving, key))
                msg = f"Circular dependency detected: {chain}"
                raise CyclicDependency(msg)

            self._resolving.append(key)
            try:
                instance = Constructor(self).construct(_load_type(binding.target), *args, **overrides)
            finally:
                self._resolving.pop()

            if binding.singleton:
                self._instances[key] = instance
                logger.debug("Cached singleton instance for %r", key)

            return instance

    def resolve_param(self, cls: type, name: str, p: inspect.Parameter, hints: dict[str, Any]) -> Any:
        """Resolving param.

        Returns `inspect.Parameter.empty` when the parameter is left to its
        default or to the constructor itself:
        1. variadic, defaulted or list-typed parameters
        2. missing, non-class or builtin annotations
        Otherwise the container itself (for `Resolver` capabilities) or the
        recursively resolved annotation.
        """
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            return inspect.Parameter.empty

        if p.default is not inspect.Parameter.empty:
            return inspect.Parameter.empty

        ann = _unwrap_optional(hints.get(name, p.annotation))
        if ann is inspect.Parameter.empty or _is_list_annotation(ann):
            return inspect.Parameter.empty

        if not inspect.isclass(ann) or getattr(ann, "__module__", "") == "builtins":
            logger.debug("Leaving parameter '%s' of %s unresolved (annotation: %r)", name, cls.__name__, ann)
            return inspect.Parameter.empty

        if self._provides(ann):
            return self

        return self.resolve(ann)

    def _provides(self, ann: type) -> bool:
        """Whether a parameter annotated with `ann` asks for this container."""
        # MRO membership: Resolver is not runtime-checkable, so issubclass() would raise.
        return Resolver in ann.__mro__ and ann in type(self).__mro__

    def _lookup(self, key: Key[T]) -> Binding | None:
        if key in self._bindings:
            return self._bindings[key]

        return self._aliases.get(key)

    def _ensure_unbound(self, key: Key[T]) -> None:
        if key in self._bindings:
            msg = f"Duplicate binding for {key!r}"
            raise DuplicateBinding(msg)

    def __getitem__(self, key: Key[T]) -> Any:
        return self.resolve(key)

    def __setitem__(self, key: Key[T], value: object) -> None:
        # The assigned value lands in the singleton flag; it is not stored.
        self.bind(key, bool(value))

    def __contains__(self, key: object) -> bool:
        return self.is_bound(key)

    def __delitem__(self, key: Key[T]) -> None:
        # Aliases and cached singletons of `key` are left in place.
        with self._lock:
            self._bindings.pop(key, None)


class Constructor:
    def __init__(self, resolver: Container) -> None:
        self._resolver = resolver

    def construct(self, cls: type[T], *args: Any, **overrides: Any) -> T:
        if cls.__init__ is object.__init__:
            # No constructor to feed; caller arguments are dropped.
            return cls()

        try:
            sig = inspect.signature(cls)
        except (TypeError, ValueError):
            # C-implemented constructors without a text signature.
            return cls(*args, **overrides)

        bound = self._bind_explicit(sig, args, overrides, cls)

        self._fill_missing_arguments(cls, sig, bound)

        return cls(*bound.args, **bound.kwargs)

    def _fill_missing_arguments(self, cls: type[T], sig: inspect.Signature, bound: inspect.BoundArguments) -> None:
        hints = _get_init_type_hints(cls)

        for name, p in sig.parameters.items():
            if name not in bound.arguments:
                value = self._resolver.resolve_param(cls, name, p, hints)
                if value is not inspect.Parameter.empty:
                    bound.arguments[name] = value

    def _bind_explicit(
        self, sig: inspect.Signature, args: tuple[Any, ...], kw: dict[str, Any], cls: type[T]
    ) -> inspect.BoundArguments:
        try:
            return sig.bind_partial(*args, **kw)
        except TypeError as e:
            msg = f"Arguments don't match {cls.__name__} signature: {e}"
            raise TypeError(msg) from e


def _load_type(target: object) -> type:
    """Turn a type reference into an instantiable class or raise InstantiationError."""
    if isinstance(target, str):
        try:
            target = pkgutil.resolve_name(target)
        except (ImportError, AttributeError, ValueError) as e:
            msg = f"Class [{target}] is not a resolvable dependency!"
            raise InstantiationError(msg) from e

    if not inspect.isclass(target) or inspect.isabstract(target) or _is_protocol(target):
        msg = f"Class [{_describe(target)}] is not a resolvable dependency!"
        raise InstantiationError(msg)

    return target


def _unwrap_optional(ann: object) -> object:
    """`Optional[X]` / `X | None` -> `X`; anything else is returned unchanged."""
    if get_origin(ann) not in (typing.Union, types.UnionType):
        return ann

    args = [a for a in get_args(ann) if a is not type(None)]
    return args[0] if len(args) == 1 else ann


def _is_list_annotation(ann: object) -> bool:
    return ann is list or get_origin(ann) is list


def _describe(key: object) -> str:
    return getattr(key, "__qualname__", None) or repr(key)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        """Detect whether 'tp' is a typing.Protocol class itself, not a concrete subclass."""
        return inspect.isclass(tp) and tp is not Protocol and bool(getattr(tp, "_is_protocol", False))


def _get_init_type_hints(cls: type[T]) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
