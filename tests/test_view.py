from intersection_sim import Direction, Snapshot, Vehicle, VehicleState
from intersection_sim.view import ConsoleView, RESET


def crossing(n, direction):
    v = Vehicle(vid=f'V-{n:05d}', vehicle_type='Car', direction=direction, arrived_at=0.0)
    return v.advance(VehicleState.CROSSING, 100.0)


def sample_snapshot():
    waiting = Vehicle(vid='V-00003', vehicle_type='Bus', direction=Direction.EAST, arrived_at=200.0)
    passed = Vehicle(vid='V-00004', vehicle_type='Truck', direction=Direction.SOUTH, arrived_at=0.0)
    passed = passed.advance(VehicleState.CROSSING, 300.0).advance(VehicleState.PASSED, 900.0)
    vehicles = (crossing(1, Direction.NORTH), crossing(2, Direction.NORTH), waiting, passed)
    return Snapshot(taken_at=1000.0, version=9, vehicles=vehicles)


def test_grid_counts_every_vehicle_in_a_zone():
    grid = ConsoleView(color=False).render_grid(sample_snapshot())
    lines = grid.splitlines()
    # 3 rows of cells separated by borders
    assert len(lines) == 7
    assert 'A:2' in lines[1]
    assert 'X' in lines[3]
    assert 'B:' not in grid


def test_table_has_one_row_per_vehicle():
    table = ConsoleView(color=False).render_table(sample_snapshot())
    lines = table.splitlines()
    assert lines[0].split(' | ')[0].strip() == 'Vehicle ID'
    assert len(lines) == 2 + 4
    assert 'V-00003' in lines[4] and 'Waiting' in lines[4] and '800ms' in lines[4]
    # passed vehicles show the time they waited before crossing
    assert 'Passed' in lines[5] and '300ms' in lines[5]


def test_render_header_and_colors():
    snap = sample_snapshot()
    plain = ConsoleView(color=False).render(snap)
    assert plain.splitlines()[0].endswith('4 active')
    assert RESET not in plain
    assert RESET in ConsoleView(color=True).render(snap)
