
from decimal import Decimal
from typing import Iterable, Mapping, Union

from cineseat.core.errors import SeatConfigurationError
from cineseat.utils.seats import MIXED, SeatCategory, category_of


def _price_for(price_map: Mapping, category: SeatCategory) -> Decimal:
    try:
        value = price_map[category.value]
    except KeyError:
        raise SeatConfigurationError(f"Price map has no price for {category.value}") from None
    return Decimal(str(value))


def compute_total(price_map: Mapping, seat_ids: Iterable[str]) -> Decimal:
    """Authoritative charge for a seat set: the sum of each seat's category price."""
    return sum((_price_for(price_map, category_of(seat)) for seat in seat_ids), Decimal("0"))


def derive_category(seat_ids: Iterable[str]) -> Union[SeatCategory, str]:
    """The single category shared by every seat, or "Mixed"."""
    categories = {category_of(seat) for seat in seat_ids}
    if len(categories) == 1:
        return categories.pop()
    return MIXED
