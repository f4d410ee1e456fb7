# view.py
# Text rendering of a registry snapshot: an occupancy grid and a vehicle table.
# The simulation core never imports this module.

from .vehicle import VehicleState, Zone

# --- ANSI Color Codes for Visual Console Output ---
TEAL = '\033[96m'
NAVY = '\033[94m'
WHITE = '\033[97m'
BOLD = '\033[1m'
RESET = '\033[0m'

STATE_COLORS = {
    VehicleState.WAITING: TEAL,
    VehicleState.CROSSING: NAVY,
    VehicleState.PASSED: WHITE,
}

ZONE_BY_CELL = {zone.cell: zone for zone in Zone}
CENTRE_CELL = 4
CELL_WIDTH = 9

TABLE_COLUMNS = ("Vehicle ID", "Type", "Direction", "State", "Duration")


def colorize(text, color):
    """Applies ANSI color codes to the text."""
    return f"{color}{text}{RESET}"


class ConsoleView:
    def __init__(self, color=True):
        self.color = color

    def render(self, snapshot):
        """Grid and table for one snapshot, as a single string."""
        return "\n".join([
            f"t = {snapshot.taken_at:10.1f} ms | {len(snapshot)} active",
            self.render_grid(snapshot),
            self.render_table(snapshot),
        ])

    def render_grid(self, snapshot):
        occupancy = snapshot.occupancy()
        border = "+" + "+".join("-" * CELL_WIDTH for _ in range(3)) + "+"
        lines = [border]
        for row in range(3):
            cells = []
            for col in range(3):
                cells.append(self._cell(row * 3 + col, occupancy))
            lines.append("|" + "|".join(cells) + "|")
            lines.append(border)
        return "\n".join(lines)

    def _cell(self, index, occupancy):
        if index == CENTRE_CELL:
            return "X".center(CELL_WIDTH)
        zone = ZONE_BY_CELL.get(index)
        if zone is None:
            return " " * CELL_WIDTH
        vids = occupancy[zone]
        if not vids:
            return f"{zone.name}".center(CELL_WIDTH)
        text = f"{zone.name}:{len(vids)}".center(CELL_WIDTH)
        return self._paint(text, STATE_COLORS[VehicleState.CROSSING] + BOLD)

    def render_table(self, snapshot):
        records = snapshot.rows()
        rows = [(r.vid, r.vehicle_type, r.direction.value, r.state.label, f"{r.elapsed:.0f}ms")
                for r in records]
        widths = [len(c) for c in TABLE_COLUMNS]
        for row in rows:
            widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

        def fmt(cells):
            return " | ".join(cell.ljust(w) for cell, w in zip(cells, widths))

        lines = [fmt(TABLE_COLUMNS), "-+-".join("-" * w for w in widths)]
        for row, r in zip(rows, records):
            lines.append(self._paint(fmt(row), STATE_COLORS[r.state]))
        return "\n".join(lines)

    def _paint(self, text, color):
        return colorize(text, color) if self.color else text
