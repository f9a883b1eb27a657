from __future__ import annotations

import pytest
import traci

from conftest import per_id
from trafficlink.sumo.faults import ConnectionFault
from trafficlink.sumo.models import RED, UNSET_COLOR, Color, OperationKind, VehicleState
from trafficlink.sumo.vehicles import LANE_INDEX_ERROR, VehicleWrapper

GREEN = Color(0, 255, 0, 255)


@pytest.fixture
def offline(offline_session) -> VehicleWrapper:
    return VehicleWrapper(offline_session)


def test_offline_reads_return_sentinels(offline: VehicleWrapper) -> None:
    assert offline.get_vehicle_count() == 0
    assert offline.get_vehicle_ids() == []
    assert offline.get_vehicle_rows() == []
    assert offline.get_vehicle_positions() == {}
    assert offline.get_vehicle_types() == {}
    assert offline.get_speed("v1") == 0.0
    assert offline.get_position("v1") == (0.0, 0.0)
    assert offline.get_edge_id("v1") == ""
    assert offline.get_lane_index("v1") == LANE_INDEX_ERROR
    assert offline.get_color_rgba("v1") == UNSET_COLOR


def test_offline_writes_are_ignored(offline: VehicleWrapper) -> None:
    offline.set_speed("v1", 3.0)
    offline.add_vehicle("v1", "E1")
    offline.configure_vehicle("v1", 10.0, 0.5, 0, 0, 255)
    offline.apply_pending_updates()

    assert not offline.queue


def test_vehicle_count(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "getIDCount", 42)
    assert vehicles.get_vehicle_count() == 42


def test_connection_fault_clears_pending_operations(vehicles: VehicleWrapper, session) -> None:
    vehicles.queue.enqueue("v1", OperationKind.SET_COLOR, GREEN.as_tuple())
    vehicles.preferred_colors["v1"] = GREEN

    session.report_connection_fault(ConnectionFault("socket closed"))

    assert not vehicles.queue
    assert vehicles.preferred_colors == {"v1": GREEN}


def test_drain_fault_is_reported_and_clears_queue(vehicles: VehicleWrapper, session, fake) -> None:
    fake.stub("vehicle", "setColor", traci.FatalTraCIError("connection closed"))
    vehicles.queue.enqueue("v1", OperationKind.SET_COLOR, GREEN.as_tuple())
    vehicles.queue.enqueue("v2", OperationKind.SET_COLOR, GREEN.as_tuple())

    vehicles.apply_pending_updates()

    assert not session.is_ready()
    assert not vehicles.queue
    assert len(fake.calls_to("vehicle", "setColor")) == 1


def test_rows_drain_queue_before_reading(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "setMaxSpeed", None)
    fake.stub("vehicle", "getIDList", ())
    vehicles.queue.enqueue("v1", OperationKind.SET_MAX_SPEED, 9.0)

    vehicles.get_vehicle_rows()

    assert [m for _, m, _, _ in fake.calls] == ["setMaxSpeed", "getIDList"]
    assert not vehicles.queue


def test_rows_prefer_wellformed_reported_color(vehicles: VehicleWrapper, fake) -> None:
    vehicles.preferred_colors["v1"] = GREEN
    vehicles.preferred_colors["v2"] = GREEN
    fake.stub("vehicle", "getIDList", ("v1", "v2", "v3"))
    fake.stub("vehicle", "getSpeed", 3.0)
    fake.stub("vehicle", "getRoadID", "E1")
    fake.stub(
        "vehicle",
        "getColor",
        per_id({"v1": (0, 0, 255, 128), "v2": ("bad",), "v3": None}),
    )

    rows = {row.id: row for row in vehicles.get_vehicle_rows()}

    assert rows["v1"].color == Color(0, 0, 255, 128)
    assert rows["v1"].opacity == pytest.approx(128 / 255)
    assert rows["v2"].color == GREEN
    assert rows["v3"].color == RED


def test_rows_wrap_signed_color_channels(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "getIDList", ("v1",))
    fake.stub("vehicle", "getSpeed", 1.0)
    fake.stub("vehicle", "getRoadID", "E1")
    fake.stub("vehicle", "getColor", (-1, 0, -128))

    (row,) = vehicles.get_vehicle_rows()

    assert row.color == Color(255, 0, 128, 255)


def test_rows_clamp_negative_speed(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "getIDList", ("v1",))
    fake.stub("vehicle", "getSpeed", -1.0)
    fake.stub("vehicle", "getRoadID", "E1")
    fake.stub("vehicle", "getColor", (255, 0, 0, 255))

    (row,) = vehicles.get_vehicle_rows()

    assert row.speed == 0.0


def test_rows_stop_at_connection_fault(vehicles: VehicleWrapper, session, fake) -> None:
    fake.stub("vehicle", "getIDList", ("v1", "v2", "v3"))
    fake.stub(
        "vehicle",
        "getSpeed",
        per_id({"v1": 2.0, "v2": traci.FatalTraCIError("lost"), "v3": 4.0}),
    )
    fake.stub("vehicle", "getRoadID", "E1")
    fake.stub("vehicle", "getColor", (255, 0, 0, 255))

    rows = vehicles.get_vehicle_rows()

    assert [row.id for row in rows] == ["v1"]
    assert not session.is_ready()
    assert ("v3",) not in fake.calls_to("vehicle", "getSpeed")


def test_positions_skip_malformed_payloads(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "getIDList", ("v1", "v2", "v3"))
    fake.stub("vehicle", "getPosition", per_id({"v1": (10.0, 20.5), "v2": (1.0,)}))

    assert vehicles.get_vehicle_positions() == {"v1": (10.0, 20.5)}


def test_lane_ids_and_angles(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "getIDList", ("v1", "v2"))
    fake.stub("vehicle", "getLaneID", per_id({"v1": "E1_0", "v2": ""}))
    fake.stub("vehicle", "getAngle", per_id({"v1": 90.0, "v2": "n/a"}))

    assert vehicles.get_vehicle_lane_ids() == {"v1": "E1_0"}
    assert vehicles.get_vehicle_angles() == {"v1": 90.0}


def test_vehicle_types_fall_back_to_type_id(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "getIDList", ("car1", "bus1", "ghost"))
    fake.stub("vehicle", "getVehicleClass", per_id({"car1": "Passenger", "bus1": ""}))
    fake.stub("vehicle", "getTypeID", per_id({"bus1": "city_bus"}))

    assert vehicles.get_vehicle_types() == {"car1": "passenger", "bus1": "city_bus"}


def test_single_vehicle_getters(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "getSpeed", 8.5)
    fake.stub("vehicle", "getPosition", (3.0, 4.0))
    fake.stub("vehicle", "getRoadID", "E2")
    fake.stub("vehicle", "getLaneID", "E2_1")
    fake.stub("vehicle", "getLaneIndex", 1)
    fake.stub("vehicle", "getColor", (10, 20, 30, 40))

    assert vehicles.get_speed("v1") == 8.5
    assert vehicles.get_position("v1") == (3.0, 4.0)
    assert vehicles.get_edge_id("v1") == "E2"
    assert vehicles.get_lane_id("v1") == "E2_1"
    assert vehicles.get_lane_index("v1") == 1
    assert vehicles.get_color_rgba("v1") == Color(10, 20, 30, 40)
    assert vehicles.update_state("v1") == VehicleState("v1", 3.0, 4.0, 8.5, "E2")


def test_unknown_vehicle_getters_return_sentinels(vehicles: VehicleWrapper) -> None:
    assert vehicles.get_speed("ghost") == 0.0
    assert vehicles.get_position("ghost") == (0.0, 0.0)
    assert vehicles.get_lane_index("ghost") == LANE_INDEX_ERROR
    assert vehicles.get_color_rgba("ghost") == UNSET_COLOR
    assert vehicles.update_state("ghost") == VehicleState("ghost", 0.0, 0.0, 0.0, "")


def test_configure_vehicle(vehicles: VehicleWrapper, fake) -> None:
    for setter in ("setMaxSpeed", "setSpeed", "setColor"):
        fake.stub("vehicle", setter, None)

    vehicles.configure_vehicle("v1", 20.0, 2.0, 0, 0, 255)

    assert fake.calls_to("vehicle", "setMaxSpeed") == [("v1", 20.0)]
    assert fake.calls_to("vehicle", "setSpeed") == [("v1", 20.0)]
    assert fake.calls_to("vehicle", "setColor") == [("v1", (0, 0, 255, 255))]


def test_configure_vehicle_rejects_invalid_speed(vehicles: VehicleWrapper, fake) -> None:
    vehicles.configure_vehicle("v1", float("nan"), 0.5, 0, 0, 0)
    vehicles.configure_vehicle("v1", -1.0, 0.5, 0, 0, 0)
    vehicles.configure_vehicle("", 10.0, 0.5, 0, 0, 0)

    assert fake.calls == []


def test_set_color_rejects_out_of_range_channels(vehicles: VehicleWrapper, fake) -> None:
    vehicles.set_color_rgba("v1", Color(300, 0, 0))

    assert fake.calls == []


@pytest.mark.parametrize(
    "args",
    [
        (10.0, None, 0, 0, 0),
        (10.0, "half", 0, 0, 0),
        (None, 0.5, 0, 0, 0),
        (10.0, 0.5, None, 0, 0),
        (10.0, 0.5, 0, 300, 0),
        (10.0, 0.5, 0, 0, 0, -1),
    ],
)
def test_configure_vehicle_validates_before_writing(
    vehicles: VehicleWrapper, fake, args
) -> None:
    for setter in ("setMaxSpeed", "setSpeed", "setColor"):
        fake.stub("vehicle", setter, None)

    vehicles.configure_vehicle("v1", *args)

    assert fake.calls == []


@pytest.mark.parametrize("speed", [None, "fast", float("nan")])
def test_set_speed_ignores_non_numeric_speed(vehicles: VehicleWrapper, fake, speed) -> None:
    fake.stub("vehicle", "setSpeed", None)

    vehicles.set_speed("v1", speed)

    assert fake.calls == []


def test_set_speed_hands_control_back_with_minus_one(vehicles: VehicleWrapper, fake) -> None:
    fake.stub("vehicle", "setSpeed", None)

    vehicles.set_speed("v1", -1)

    assert fake.calls_to("vehicle", "setSpeed") == [("v1", -1.0)]


def test_set_color_ignores_missing_channels(vehicles: VehicleWrapper, fake) -> None:
    vehicles.set_color_rgba("v1", Color(None, 0, 0))

    assert fake.calls == []


def test_failed_write_does_not_raise(vehicles: VehicleWrapper, session, fake) -> None:
    fake.stub("vehicle", "setSpeed", traci.TraCIException("Vehicle 'v1' is not known"))

    vehicles.set_speed("v1", 5.0)

    assert session.is_ready()
