"""Unit tests for LawOfDemeterRule (W9006)."""

import pytest

from pydemeter.domain.errors import AnalysisInvariantError
from pydemeter.domain.rules import Violation
from pydemeter.domain.rules.demeter import LawOfDemeterRule
from tests.linter_test_utils import (
    SAMPLE_PATH,
    build_model,
    find_call,
    only_call,
    run_rule,
)


def _classify(code: str, rendered: str, **build_kwargs):
    module, model = build_model(code, **build_kwargs)
    return LawOfDemeterRule().classify(find_call(module, rendered), model)


class TestNotSubjectToDemeter:
    """Rules 1 and 2: calls that are never examined."""

    def test_plain_function_call_is_allowed(self) -> None:
        code = """
        class Printer:
            def run(self, items):
                print(items)
        """
        decision = _classify(code, "print")
        assert not decision.is_violation
        assert decision.reason == "not a member call"

    def test_module_qualified_function_is_allowed(self) -> None:
        code = """
        import os

        class Paths:
            def cwd(self):
                return os.getcwd()
        """
        decision = _classify(code, "os.getcwd")
        assert not decision.is_violation
        assert decision.reason == "not a method call"

    def test_chain_outside_any_function_is_allowed(self) -> None:
        code = """
        NAMES = ["a", "b"]
        LAST = NAMES.pop().upper()
        """
        assert run_rule(code) == []

    def test_chain_in_free_function_is_allowed(self) -> None:
        code = """
        def helper(items):
            return items.pop().strip()
        """
        decision = _classify(code, "items.pop().strip")
        assert decision.reason == "not inside a method"

    def test_chain_in_staticmethod_is_allowed(self) -> None:
        code = """
        class Parser:
            @staticmethod
            def first(items):
                return items.pop().strip()
        """
        assert run_rule(code) == []

    def test_nested_function_inside_method_is_not_a_method(self) -> None:
        code = """
        class Outer:
            def run(self, items):
                def key(item):
                    return item.name.lower()
                return sorted(items, key=key)
        """
        assert run_rule(code) == []


class TestChainedCalls:
    """Rule 3: a method called on the result of another call."""

    def test_call_on_call_result_is_a_violation(self) -> None:
        code = """
        class Repo:
            def load(self):
                return "x"

            def run(self):
                return self.load().strip()
        """
        decision = _classify(code, "self.load().strip")
        assert decision.is_violation
        assert decision.reason == "chained call"

    def test_cast_does_not_hide_the_chain(self) -> None:
        code = """
        from typing import cast

        class Repo:
            def load(self):
                return "x"

            def run(self):
                return cast(str, self.load()).strip()
        """
        decision = _classify(code, "cast(str, self.load()).strip")
        assert decision.is_violation
        assert decision.reason == "chained call"

    def test_subscript_of_call_result_is_still_chained(self) -> None:
        code = """
        class Repo:
            def rows(self):
                return []

            def first(self):
                return self.rows()[0].strip()
        """
        assert _classify(code, "self.rows()[0].strip").is_violation

    def test_instantiation_is_not_a_chained_call(self) -> None:
        code = """
        class Builder:
            def build(self):
                return 1

        class Factory:
            def make(self):
                return Builder().build()
        """
        decision = _classify(code, "Builder().build")
        assert not decision.is_violation
        assert decision.reason == "call on an object created in place"

    def test_call_on_lambda_is_created_in_place(self) -> None:
        code = """
        class Timer:
            def tick(self):
                return (lambda: 1).__call__()
        """
        module, model = build_model(code)
        decision = LawOfDemeterRule().classify(only_call(module), model)
        assert decision.reason == "call on an object created in place"

    def test_call_on_selection_is_a_violation(self) -> None:
        code = """
        class Pair:
            def __init__(self, left, right):
                self.left = left
                self.right = right

            def first(self):
                return (self.left or self.right).run()
        """
        module, model = build_model(code)
        decision = LawOfDemeterRule().classify(only_call(module), model)
        assert decision.is_violation
        assert decision.reason == "call on a selected object"


class TestReceiverAndParameters:
    """Rules 4 and 5."""

    def test_self_call_is_allowed(self) -> None:
        code = """
        class Foo:
            def foo(self):
                pass

            def bar(self):
                self.foo()
        """
        assert run_rule(code) == []

    def test_classmethod_receiver_is_allowed(self) -> None:
        code = """
        class Registry:
            @classmethod
            def default(cls):
                return cls.create()

            @classmethod
            def create(cls):
                return cls()
        """
        assert run_rule(code) == []

    def test_super_call_is_allowed(self) -> None:
        code = """
        class Base:
            def run(self):
                pass

        class Child(Base):
            def run(self):
                super().run()
        """
        decision = _classify(code, "super().run")
        assert decision.reason == "call on the receiver"

    def test_positional_parameter_is_allowed(self) -> None:
        code = """
        class Car:
            def drive(self, engine):
                engine.start()
        """
        decision = _classify(code, "engine.start")
        assert decision.reason == "call on a parameter"

    def test_keyword_and_variadic_parameters_are_allowed(self) -> None:
        code = """
        class Car:
            def drive(self, *engines, gear, **options):
                gear.shift()
                engines.count(1)
                return options.get("speed")
        """
        assert run_rule(code) == []


class TestLocalBindings:
    """Rules 6 and 7: where a local object came from."""

    def test_object_obtained_from_a_call_is_a_violation(self) -> None:
        code = """
        class Engine:
            def start(self):
                pass

        class Car:
            def __init__(self):
                self.engine = Engine()

            def get_engine(self):
                return self.engine

            def drive(self):
                engine = self.get_engine()
                engine.start()
        """
        decision = _classify(code, "engine.start")
        assert decision.is_violation
        assert decision.reason == "call on an object obtained from another call"

    def test_awaited_call_result_is_borrowed(self) -> None:
        code = """
        class Client:
            async def fetch(self, session):
                response = await session.get("/items")
                return response.json()
        """
        violations = run_rule(code)
        assert [v.expr for v in violations] == ["response.json"]

    def test_tuple_unpacked_from_call_is_borrowed(self) -> None:
        code = """
        class Splitter:
            def halves(self):
                return [], []

            def run(self):
                left, right = self.halves()
                left.append(1)
        """
        assert _classify(code, "left.append").is_violation

    def test_walrus_binding_is_borrowed(self) -> None:
        code = """
        class Pool:
            def acquire(self):
                return None

            def run(self):
                if (conn := self.acquire()) is not None:
                    conn.close()
        """
        assert _classify(code, "conn.close").is_violation

    def test_first_binding_decides_provenance(self) -> None:
        code = """
        class Cache:
            def lookup(self):
                return []

            def run(self):
                items = []
                items = self.lookup()
                items.append(1)
        """
        assert not _classify(code, "items.append").is_violation

    def test_instantiated_local_is_allowed(self) -> None:
        code = """
        class Engine:
            def start(self):
                pass

        class Garage:
            def build(self):
                engine = Engine()
                engine.start()
        """
        decision = _classify(code, "engine.start")
        assert decision.reason == "call on an object created in the method"

    def test_literal_local_is_allowed(self) -> None:
        code = """
        class Collector:
            def run(self):
                items = []
                items.append(1)
                text = "a,b"
                return text.split(",")
        """
        assert run_rule(code) == []

    def test_copy_is_an_allocation_primitive(self) -> None:
        code = """
        import copy

        class Engine:
            def start(self):
                pass

        class Garage:
            def __init__(self):
                self.engine = Engine()

            def spare(self):
                clone = copy.copy(self.engine)
                clone.start()
        """
        assert run_rule(code) == []

    def test_configured_allocation_primitive(self) -> None:
        code = """
        import factories

        class Garage:
            def open(self):
                engine = factories.make_engine()
                engine.start()
        """
        assert _classify(code, "engine.start").is_violation
        decision = _classify(
            code,
            "engine.start",
            config={"allocation_primitives": ["factories.make_engine"]},
        )
        assert not decision.is_violation

    def test_loop_variable_is_local(self) -> None:
        code = """
        class Batch:
            def __init__(self):
                self.jobs = []

            def run(self):
                for job in self.jobs:
                    job.run()
        """
        assert run_rule(code) == []

    def test_lambda_parameter_is_local(self) -> None:
        code = """
        class Sorter:
            def run(self, items):
                return sorted(items, key=lambda item: item.lower())
        """
        assert run_rule(code) == []


class TestComponentsAndGlobals:
    """Rules 8, 9 and the default."""

    ENGINE = """
    class Engine:
        def start(self):
            pass
    """

    def test_direct_component_is_allowed(self) -> None:
        code = self.ENGINE + """
    class Car:
        def __init__(self):
            self.engine = Engine()

        def drive(self):
            self.engine.start()
    """
        decision = _classify(code, "self.engine.start")
        assert decision.reason == "call on a direct component"

    def test_component_shadowed_by_borrowed_local_is_allowed(self) -> None:
        code = self.ENGINE + """
    class Car:
        def __init__(self):
            self.engine = Engine()

        def make(self):
            return Engine()

        def drive(self):
            engine = self.make()
            self.engine.start()
            return engine
    """
        assert not _classify(code, "self.engine.start").is_violation
        assert run_rule(code) == []

    def test_slot_and_class_attribute_are_components(self) -> None:
        code = self.ENGINE + """
    class Car:
        __slots__ = ("engine",)
        spare = Engine()

        def drive(self):
            self.engine.start()
            self.spare.start()
    """
        assert run_rule(code) == []

    def test_component_of_another_object_is_a_violation(self) -> None:
        code = self.ENGINE + """
    class Car:
        def __init__(self):
            self.engine = Engine()

        def race(self, other):
            other.engine.start()
    """
        decision = _classify(code, "other.engine.start")
        assert decision.is_violation
        assert decision.reason == "call on a stranger"

    def test_component_of_a_component_is_a_violation(self) -> None:
        code = self.ENGINE + """
    class Car:
        def __init__(self):
            self.engine = Engine()

    class Garage:
        def __init__(self):
            self.car = Car()

        def service(self):
            self.car.engine.start()
    """
        assert _classify(code, "self.car.engine.start").is_violation

    def test_inherited_field_is_not_a_direct_component(self) -> None:
        code = self.ENGINE + """
    class Vehicle:
        def __init__(self):
            self.engine = Engine()

    class Truck(Vehicle):
        def haul(self):
            self.engine.start()
    """
        assert _classify(code, "self.engine.start").is_violation

    def test_protocol_receiver_has_no_components(self) -> None:
        code = self.ENGINE + """
    from typing import Protocol

    class Runner(Protocol):
        engine: Engine

        def go(self):
            self.engine.start()
    """
        assert _classify(code, "self.engine.start").is_violation

    def test_module_level_object_is_allowed(self) -> None:
        code = """
        import logging

        LOGGER = logging.getLogger(__name__)

        class Job:
            def run(self):
                LOGGER.info("running")
        """
        decision = _classify(code, "LOGGER.info")
        assert decision.reason == "call on a global object"

    def test_module_attribute_is_allowed(self) -> None:
        code = """
        import registry

        class Job:
            def run(self):
                registry.DEFAULT.submit(self)
        """
        decision = _classify(code, "registry.DEFAULT.submit")
        assert decision.reason == "call on a global object"


class TestCheck:
    """check() wraps classify() into Violation records."""

    def test_check_returns_one_violation_with_position_and_text(self) -> None:
        code = """
        class Repo:
            def load(self):
                return "x"

            def run(self):
                return self.load().strip()
        """
        module, model = build_model(code)
        call = find_call(module, "self.load().strip")
        assert LawOfDemeterRule().check(call, model) == [
            Violation(SAMPLE_PATH, call.lineno, call.col_offset + 1, "self.load().strip")
        ]

    def test_check_returns_nothing_for_allowed_call(self) -> None:
        code = """
        class Foo:
            def foo(self):
                pass

            def bar(self):
                self.foo()
        """
        module, model = build_model(code)
        assert LawOfDemeterRule().check(find_call(module, "self.foo"), model) == []

    def test_unsupported_target_shape_fails_loudly(self) -> None:
        code = """
        class Gen:
            def run(self):
                (yield).send(None)
        """
        module, model = build_model(code)
        with pytest.raises(AnalysisInvariantError, match="unsupported call target shape Yield"):
            LawOfDemeterRule().classify(only_call(module), model)

    def test_call_from_another_unit_fails_loudly(self) -> None:
        _, model = build_model("x = 1\n")
        other, _ = build_model(
            """
            class Foo:
                def bar(self, other):
                    other.run()
            """
        )
        with pytest.raises(AnalysisInvariantError, match="unresolved call target"):
            LawOfDemeterRule().classify(find_call(other, "other.run"), model)

    def test_rule_identity(self) -> None:
        assert LawOfDemeterRule.code == "W9006"
        assert LawOfDemeterRule.symbol == "law-of-demeter-violation"


def test_star_imported_object_is_global() -> None:
    code = """
    from services import *

    class Job:
        def run(self):
            scheduler.submit(self)
    """
    assert run_rule(code) == []
