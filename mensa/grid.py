# mensa/grid.py
from typing import NamedTuple

from mensa.config import MIN_LETTER, MAX_LETTER, MIN_NUMBER, MAX_NUMBER
from mensa.errors import BadFormat, OutOfBounds


class Cell(NamedTuple):
    """Zero-based grid cell: column from the letter, row from the number."""
    column: int
    row: int


def parse_cell(token: str) -> Cell:
    """
    Turn "A5" / "5a" / "J10" / "10J" into a Cell.
    The letter may sit at either end; whatever remains must be the number.
    """
    token = token or ""
    if len(token) < 2 or len(token) > 3:
        raise BadFormat("Bad position format, 2-3 characters")

    chars = list(token.upper())
    if chars[0].isascii() and chars[0].isalpha():
        letter = chars.pop(0)
    elif chars[-1].isascii() and chars[-1].isalpha():
        letter = chars.pop()
    else:
        raise BadFormat("Bad position format, no letter")

    rest = "".join(chars)
    # int() would also take "+5", " 5" or "٥"
    if not (rest.isascii() and rest.isdigit()):
        raise BadFormat(f"Bad position format, `{rest}` is not a number")
    number = int(rest)

    if not (MIN_LETTER <= letter <= MAX_LETTER) or not (MIN_NUMBER <= number <= MAX_NUMBER):
        raise OutOfBounds((MIN_LETTER, MAX_LETTER), (MIN_NUMBER, MAX_NUMBER))

    return Cell(ord(letter) - ord(MIN_LETTER), number - MIN_NUMBER)


def format_cell(cell: Cell) -> str:
    return f"{chr(ord(MIN_LETTER) + cell.column)}{cell.row + MIN_NUMBER}"
