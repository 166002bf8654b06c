"""Minimal dependency injection container.

This package provides a small registry mapping keys to construction strategies,
wiring constructor dependencies automatically from type hints.

Exports:
- `Container`: Registry of bindings, aliases and singleton instances with
  recursive constructor injection.
- `Resolver`: Capability protocol; a constructor parameter annotated with it
  (or with `Container`) receives the resolving container.
- `Binding`, `SpecKind`: The registered construction target (type reference or
  literal value).
- Errors: `ContainerError` and its subclasses `DuplicateBinding`,
  `DuplicateAlias`, `UndefinedKey`, `ResolutionError`, `InstantiationError`
  and `CyclicDependency`.
"""

from ._container import (
    Binding,
    Container,
    ContainerError,
    CyclicDependency,
    DuplicateAlias,
    DuplicateBinding,
    InstantiationError,
    ResolutionError,
    Resolver,
    SpecKind,
    UndefinedKey,
)


__all__ = [
    "Binding",
    "Container",
    "ContainerError",
    "CyclicDependency",
    "DuplicateAlias",
    "DuplicateBinding",
    "InstantiationError",
    "ResolutionError",
    "Resolver",
    "SpecKind",
    "UndefinedKey",
]
