"""Canvas placement for newly imported tables."""

from dataclasses import dataclass
from typing import Sequence, Tuple

from core.config import settings
from schemas.graph import TableNode


@dataclass(frozen=True)
class GridLayout:
    """
    Packs tables left-to-right in rows of fixed-pitch cells, starting at (0, 0).

    A row wraps once the next cell would start past ``row_width``. A cell is
    free when a card placed there does not overlap the card of any table that
    is already placed, wherever that table sits on the canvas.
    """
    cell_width: int = settings.layout_cell_width
    cell_height: int = settings.layout_cell_height
    card_width: int = settings.layout_card_width
    card_height: int = settings.layout_card_height
    row_width: int = settings.layout_row_width

    def __post_init__(self):
        if self.card_width >= self.cell_width or self.card_height >= self.cell_height:
            raise ValueError("Cell pitch must be larger than the card size")

    @property
    def columns(self) -> int:
        return max(1, self.row_width // self.cell_width)

    def slot(self, index: int) -> Tuple[int, int]:
        row, column = divmod(index, self.columns)
        return column * self.cell_width, row * self.cell_height

    def overlaps(self, x: int, y: int, table: TableNode) -> bool:
        return (
            x < table.x + self.card_width
            and table.x < x + self.card_width
            and y < table.y + self.card_height
            and table.y < y + self.card_height
        )

    def next_position(self, placed: Sequence[TableNode]) -> Tuple[int, int]:
        """Return the first free slot given every table placed so far."""
        # A card smaller than the pitch blocks at most four slots.
        for index in range(4 * len(placed) + 1):
            x, y = self.slot(index)
            if not any(self.overlaps(x, y, table) for table in placed):
                return x, y
        raise RuntimeError("No free slot found")


default_layout = GridLayout()
