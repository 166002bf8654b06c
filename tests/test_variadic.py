import unittest

import pytest

from titanbind import Container


class TestVariadicConstructorInjection(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_resolve_leaves_inherited_variadics_empty_and_wires_dependencies(self):
        class Clock: ...

        class Job:
            def __init__(self, clock: Clock, retries: int = 3, *args, **kwargs):
                self.clock = clock
                self.retries = retries
                self.args = args
                self.kwargs = kwargs

        class NightlyJob(Job): ...

        job = self.cont.resolve(NightlyJob)

        assert isinstance(job, NightlyJob)
        assert isinstance(job.clock, Clock)
        assert job.retries == 3
        assert job.args == ()
        assert job.kwargs == {}

    def test_resolve_passes_positional_args_then_collects_extra_keywords(self):
        class Clock: ...

        class Job:
            def __init__(self, name: str, clock: Clock, **options):
                self.name = name
                self.clock = clock
                self.options = options

        clock = Clock()
        job = self.cont.resolve(Job, "backup", clock, cron="@daily")

        assert job.name == "backup"
        assert job.clock is clock
        assert job.options == {"cron": "@daily"}

    def test_resolve_forwards_extra_positional_args_through_variadic_args(self):
        class Clock: ...

        class Batch:
            def __init__(self, clock: Clock, *items):
                self.clock = clock
                self.items = items

        clock = Clock()
        batch = self.cont.resolve(Batch, clock, 1, 2)

        assert batch.clock is clock
        assert batch.items == (1, 2)

    def test_resolve_rejects_arguments_that_do_not_fit_signature(self):
        class Point:
            def __init__(self, x: int, y: int):
                self.x = x
                self.y = y

        with pytest.raises(TypeError, match="don't match Point signature"):
            self.cont.resolve(Point, 1, 2, 3)
