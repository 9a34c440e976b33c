"""Text formatting shared by the PDF and DocX renderers."""

from decimal import Decimal
from typing import List

from backend.core.models import Address


def money(value: Decimal, symbol: str) -> str:
    return f"{value:,.2f}{symbol}"


def quantity(value: Decimal) -> str:
    return f"{value.normalize():f}"


def address_lines(address: Address) -> List[str]:
    """Name first, then whichever contact fields are present."""
    lines = [address.name]
    for value in (address.address, address.email, address.phone_number):
        if value:
            lines.append(value)
    return lines
