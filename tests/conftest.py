from __future__ import annotations

import random
from typing import Any

import pytest
import traci

from trafficlink.sumo.session import TraCISession
from trafficlink.sumo.vehicles import VehicleWrapper

DOMAINS = ("vehicle", "edge", "lane", "route", "simulation", "trafficlight", "busstop")


class FakeDomain:
    """
    Stand-in for one TraCI domain (conn.vehicle, conn.edge, ...).

    Stubs are set per method name and may be a plain return value, a
    callable receiving the call arguments, or an exception (instance or
    class) to raise. Unstubbed methods raise traci.TraCIException.
    """

    def __init__(self, name: str, connection: FakeConnection) -> None:
        self._name = name
        self._connection = connection
        self.stubs: dict[str, Any] = {}

    def __getattr__(self, method: str):
        if method.startswith("_"):
            raise AttributeError(method)

        def call(*args, **kwargs):
            self._connection.calls.append((self._name, method, args, kwargs))
            if method not in self.stubs:
                raise traci.TraCIException(f"{self._name}.{method} not stubbed")
            stub = self.stubs[method]
            if isinstance(stub, BaseException):
                raise stub
            if isinstance(stub, type) and issubclass(stub, BaseException):
                raise stub(f"{self._name}.{method} failed")
            if callable(stub):
                return stub(*args, **kwargs)
            return stub

        return call


class FakeConnection:
    """Records every command issued through the session."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, tuple, dict]] = []
        self.closed = False
        self.step_error: BaseException | None = None
        for name in DOMAINS:
            setattr(self, name, FakeDomain(name, self))

    def stub(self, domain: str, method: str, value: Any) -> None:
        getattr(self, domain).stubs[method] = value

    def calls_to(self, domain: str, method: str) -> list[tuple]:
        return [args for d, m, args, _ in self.calls if d == domain and m == method]

    def kwargs_of(self, domain: str, method: str) -> list[dict]:
        return [kwargs for d, m, _, kwargs in self.calls if d == domain and m == method]

    def simulationStep(self, step: float = 0.0) -> None:
        self.calls.append(("", "simulationStep", (step,), {}))
        if self.step_error is not None:
            raise self.step_error

    def close(self) -> None:
        self.closed = True


def per_id(values: dict[str, Any], missing: BaseException | None = None):
    """Stub returning values[id]; unknown ids raise like a vanished vehicle."""

    def lookup(entity_id, *args, **kwargs):
        if entity_id not in values:
            raise missing or traci.TraCIException(f"Vehicle '{entity_id}' is not known")
        value = values[entity_id]
        if isinstance(value, BaseException):
            raise value
        return value

    return lookup


@pytest.fixture
def fake() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def session(fake: FakeConnection) -> TraCISession:
    return TraCISession(config_file="test.sumocfg", label="test", connection=fake)


@pytest.fixture
def offline_session() -> TraCISession:
    return TraCISession(config_file="test.sumocfg", label="offline")


@pytest.fixture
def vehicles(session: TraCISession) -> VehicleWrapper:
    return VehicleWrapper(session, rng=random.Random(7))
