from __future__ import annotations

from types import SimpleNamespace

import pytest

from trafficlink.sumo.runner import Injection, parse_injection, run_session
from trafficlink.sumo.session import TraCISession


@pytest.mark.parametrize(
    "text, expected",
    [
        ("v1:E1", Injection("v1", "E1", 0.0)),
        ("bus:line_7:13.9", Injection("bus", "line_7", 13.9)),
    ],
)
def test_parse_injection(text: str, expected: Injection) -> None:
    assert parse_injection(text) == expected


@pytest.mark.parametrize("text", ["v1", ":E1", "v1:", "a:b:c:d", "v1:E1:fast"])
def test_parse_injection_rejects_malformed(text: str) -> None:
    with pytest.raises(ValueError):
        parse_injection(text)


def test_run_session_injects_steps_and_disconnects(session, fake, capsys) -> None:
    fake.stub("route", "getIDList", ())
    fake.stub("route", "add", None)
    fake.stub("vehicle", "add", None)
    fake.stub("edge", "getIDList", ("E1", "E2"))
    fake.stub("simulation", "findRoute", lambda f, t, *a: SimpleNamespace(edges=(f, t)))
    for setter in ("setRoute", "setColor", "setMaxSpeed"):
        fake.stub("vehicle", setter, None)
    fake.stub("vehicle", "getIDList", ("v1",))
    fake.stub("vehicle", "getSpeed", 5.0)
    fake.stub("vehicle", "getRoadID", "E1")
    fake.stub("vehicle", "getColor", (255, 0, 0, 255))

    result = run_session(
        session,
        max_steps=3,
        injections=[Injection("v1", "E1", 10.0)],
        report_interval=2,
    )

    assert result["steps"] == 3
    assert result["edge_stats"]["E1"].vehicle_count == 1
    assert result["pending_operations"] == 0
    assert fake.calls_to("vehicle", "add") == [("v1", "route_v1")]
    assert len(fake.calls_to("", "simulationStep")) == 3
    assert fake.closed
    out = capsys.readouterr().out
    assert ">>> Step 0: 1/2 edges occupied" in out
    assert ">>> Step 2:" in out


def test_run_session_stops_when_sumo_exits(session, fake) -> None:
    fake.step_error = EOFError()
    fake.stub("edge", "getIDList", ())

    result = run_session(session, max_steps=10, report_interval=0)

    assert result["steps"] == 0
    assert result["edge_stats"] == {}


def test_run_session_without_sumo_returns_empty() -> None:
    assert run_session(TraCISession(), max_steps=5) == {}
