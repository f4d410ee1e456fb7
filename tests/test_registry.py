import dataclasses
import threading

import pytest

from intersection_sim import (Direction, DuplicateVehicleError, IllegalTransitionError, Vehicle,
                              VehicleRegistry, VehicleState, Zone)


def vehicle(n, direction=Direction.NORTH, at=0.0):
    return Vehicle(vid=f'V-{n:05d}', vehicle_type='Car', direction=direction, arrived_at=at)


@pytest.fixture
def clock():
    class Clock:
        now = 0.0

        def __call__(self):
            return self.now
    return Clock()


@pytest.fixture
def registry(clock):
    return VehicleRegistry(clock=clock)


def test_register_and_snapshot(registry):
    registry.register(vehicle(1))
    registry.register(vehicle(2, Direction.EAST))
    snap = registry.snapshot()
    assert [v.vid for v in snap] == ['V-00001', 'V-00002']
    assert len(registry) == 2
    assert 'V-00001' in registry


def test_duplicate_registration_fails(registry):
    registry.register(vehicle(1))
    with pytest.raises(DuplicateVehicleError):
        registry.register(vehicle(1))
    assert len(registry) == 1


def test_publish_replaces_record_atomically(registry):
    registry.register(vehicle(1))
    updated = registry.publish('V-00001', VehicleState.CROSSING, 12.0)
    assert updated.state is VehicleState.CROSSING
    stored = registry.snapshot().get('V-00001')
    assert stored == updated
    assert stored.crossing_started_at == 12.0


def test_publish_unknown_vehicle(registry):
    with pytest.raises(KeyError):
        registry.publish('V-99999', VehicleState.CROSSING, 1.0)


def test_failed_publish_leaves_record_untouched(registry):
    registry.register(vehicle(1))
    version = registry.version
    with pytest.raises(IllegalTransitionError):
        registry.publish('V-00001', VehicleState.PASSED, 5.0)
    assert registry.snapshot().get('V-00001').state is VehicleState.WAITING
    assert registry.version == version


def test_remove_is_idempotent(registry):
    registry.register(vehicle(1))
    assert registry.remove('V-00001').vid == 'V-00001'
    assert registry.remove('V-00001') is None
    assert registry.remove('never-there') is None
    assert registry.snapshot().is_empty


def test_snapshot_is_unaffected_by_later_mutations(registry, clock):
    registry.register(vehicle(1))
    clock.now = 5.0
    before = registry.snapshot()
    registry.publish('V-00001', VehicleState.CROSSING, 5.0)
    registry.remove('V-00001')
    assert before.taken_at == 5.0
    assert before.get('V-00001').state is VehicleState.WAITING
    with pytest.raises(dataclasses.FrozenInstanceError):
        before.vehicles = ()


def test_occupancy_lists_every_vehicle_in_a_zone(registry):
    registry.register(vehicle(1, Direction.NORTH))
    registry.register(vehicle(2, Direction.NORTH))
    registry.register(vehicle(3, Direction.WEST))
    for vid in ('V-00001', 'V-00002', 'V-00003'):
        registry.publish(vid, VehicleState.CROSSING, 1.0)
    occupancy = registry.snapshot().occupancy()
    assert set(occupancy) == set(Zone)
    assert occupancy[Zone.A] == ('V-00001', 'V-00002')
    assert occupancy[Zone.D] == ('V-00003',)
    assert occupancy[Zone.B] == ()
    assert occupancy[Zone.C] == ()


def test_waiting_and_passed_vehicles_occupy_no_zone(registry):
    registry.register(vehicle(1))
    registry.register(vehicle(2))
    registry.publish('V-00002', VehicleState.CROSSING, 1.0)
    registry.publish('V-00002', VehicleState.PASSED, 2.0)
    assert all(vids == () for vids in registry.snapshot().occupancy().values())


def test_rows_and_state_counts(registry, clock):
    registry.register(vehicle(1, Direction.SOUTH, at=0.0))
    registry.register(vehicle(2, Direction.EAST, at=10.0))
    registry.publish('V-00002', VehicleState.CROSSING, 30.0)
    clock.now = 50.0
    snap = registry.snapshot()
    rows = snap.rows()
    assert [r.vid for r in rows] == ['V-00001', 'V-00002']
    assert rows[0].direction is Direction.SOUTH
    assert rows[0].elapsed == 50.0
    assert rows[1].state is VehicleState.CROSSING
    assert rows[1].elapsed == 40.0
    assert snap.by_state() == {
        VehicleState.WAITING: 1, VehicleState.CROSSING: 1, VehicleState.PASSED: 0,
    }


def test_subscribers_see_each_mutation(registry):
    seen = []
    unsubscribe = registry.subscribe(seen.append)
    registry.register(vehicle(1))
    registry.publish('V-00001', VehicleState.CROSSING, 1.0)
    registry.remove('V-00001')
    registry.remove('V-00001')   # no-op, no notification
    assert [s.version for s in seen] == [1, 2, 3]
    assert seen[1].get('V-00001').state is VehicleState.CROSSING
    assert seen[2].is_empty
    unsubscribe()
    registry.register(vehicle(2))
    assert len(seen) == 3


def test_concurrent_writers_never_expose_torn_records(registry):
    per_thread = 50
    writers = 4
    for n in range(per_thread * writers):
        registry.register(vehicle(n))
    failures = []
    done = threading.Event()

    def write(offset):
        for n in range(offset, per_thread * writers, writers):
            vid = f'V-{n:05d}'
            registry.publish(vid, VehicleState.CROSSING, float(n))
            registry.publish(vid, VehicleState.PASSED, float(n) + 1)
            registry.remove(vid)

    def read():
        while not done.is_set():
            snap = registry.snapshot()
            seen = set()
            for v in snap:
                if v.state is not VehicleState.WAITING and v.crossing_started_at is None:
                    failures.append(v)
                if v.state is VehicleState.PASSED and v.passed_at is None:
                    failures.append(v)
            for vids in snap.occupancy().values():
                for vid in vids:
                    if vid in seen:
                        failures.append(vid)
                    seen.add(vid)

    reader = threading.Thread(target=read)
    reader.start()
    threads = [threading.Thread(target=write, args=(i,)) for i in range(writers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    done.set()
    reader.join()

    assert failures == []
    assert registry.snapshot().is_empty
    assert registry.version == per_thread * writers * 4
