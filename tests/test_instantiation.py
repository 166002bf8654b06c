from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from titanbind import Container, InstantiationError, ResolutionError, Resolver


def test_resolve_abstract_class_raises_instantiation_error():
    c = Container()

    class Repository(ABC):
        @abstractmethod
        def get(self) -> int: ...

    c.bind(Repository)
    with pytest.raises(InstantiationError, match="not a resolvable dependency"):
        c.resolve(Repository)


def test_resolve_protocol_raises_instantiation_error():
    c = Container()

    class SupportsGet(Protocol):
        def get(self) -> int: ...

    with pytest.raises(InstantiationError):
        c.resolve(SupportsGet)

    with pytest.raises(InstantiationError):
        c.resolve(Resolver)


def test_resolve_non_class_binding_raises_instantiation_error():
    c = Container()
    c.bind(42)

    with pytest.raises(InstantiationError):
        c.resolve(42)


def test_abstract_dependency_fails_whole_resolution():
    c = Container()

    class Transport(ABC):
        @abstractmethod
        def send(self) -> None: ...

    class Client:
        def __init__(self, transport: Transport):
            self.transport = transport

    with pytest.raises(InstantiationError):
        c.resolve(Client)


def test_instantiation_error_is_a_resolution_error():
    c = Container()

    with pytest.raises(ResolutionError):
        c.resolve("not a class")


def test_resolving_container_class_builds_a_new_container():
    c = Container()

    other = c.resolve(Container)
    assert isinstance(other, Container)
    assert other is not c


def test_unresolvable_forward_reference_logs_warning(caplog):
    c = Container()

    class Lazy:
        def __init__(self, dep: "Undefined" = None):  # noqa: F821
            self.dep = dep

    with caplog.at_level("WARNING", logger="titanbind._container"):
        obj = c.resolve(Lazy)

    assert obj.dep is None
    assert any("name error" in r.getMessage() for r in caplog.records)
