
import enum
import re
from typing import Dict, Iterable, List, Tuple

from cineseat.core.errors import SeatConfigurationError


class SeatCategory(str, enum.Enum):
    classic = "Classic"
    prime = "Prime"
    superior = "Superior"


MIXED = "Mixed"

ROWS = ("A", "B", "C", "D", "E", "F", "G", "H")
COLS = 10

CATEGORY_BY_ROW: Dict[str, SeatCategory] = {
    "A": SeatCategory.classic,
    "B": SeatCategory.classic,
    "C": SeatCategory.classic,
    "D": SeatCategory.prime,
    "E": SeatCategory.prime,
    "F": SeatCategory.prime,
    "G": SeatCategory.superior,
    "H": SeatCategory.superior,
}

_SEAT_ID_RE = re.compile(r"^([A-Za-z])(\d{1,2})$")


def make_seat_id(row: str, col: int) -> str:
    return f"{row}{col}"


def parse_seat_id(seat_id: str) -> Tuple[str, int]:
    """Split "A10" into ("A", 10). Raises ValueError on anything else."""
    match = _SEAT_ID_RE.match(seat_id.strip()) if isinstance(seat_id, str) else None
    if not match:
        raise ValueError(f"Malformed seat id: {seat_id!r}")
    return match.group(1).upper(), int(match.group(2))


def is_valid_seat_id(seat_id: str) -> bool:
    """True when the id names one of the 80 seats on the grid."""
    try:
        row, col = parse_seat_id(seat_id)
    except ValueError:
        return False
    return row in CATEGORY_BY_ROW and 1 <= col <= COLS


def category_of(seat_id: str) -> SeatCategory:
    """Map a seat to its price category by row letter.

    Rows outside A-H cannot exist on the fixed grid, so an unknown row is a
    configuration error rather than a user error.
    """
    try:
        row, _ = parse_seat_id(seat_id)
    except ValueError as exc:
        raise SeatConfigurationError(str(exc)) from exc
    try:
        return CATEGORY_BY_ROW[row]
    except KeyError:
        raise SeatConfigurationError(f"Row {row!r} is not part of the seat grid") from None


def all_seat_ids() -> List[str]:
    """All 80 seat ids, row-major: A1..A10, B1..B10, ..., H1..H10."""
    return [make_seat_id(row, col) for row in ROWS for col in range(1, COLS + 1)]


_GRID_ORDER = {seat_id: index for index, seat_id in enumerate(all_seat_ids())}


def normalize_seat_id(seat_id: str) -> str:
    row, col = parse_seat_id(seat_id)
    return make_seat_id(row, col)


def sort_seat_ids(seat_ids: Iterable[str]) -> List[str]:
    """Deduplicate and order seat ids the way the grid renders them."""
    return sorted(set(seat_ids), key=lambda s: _GRID_ORDER.get(s, len(_GRID_ORDER)))
