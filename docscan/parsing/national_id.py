"""Decoding of the 14-digit national identity number.

Digits 2-7 hold the birth date as YYMMDD and digit 13 encodes sex by
parity. Decoding never validates the calendar date: an implausible
value such as ``31/02/1985`` is returned as read.
"""

from dataclasses import dataclass

from docscan.models import FEMALE, MALE

NATIONAL_ID_LENGTH = 14

# Two-digit years above the pivot belong to the 1900s, the rest to the 2000s.
CENTURY_PIVOT = 30


@dataclass(frozen=True)
class NationalIdInfo:
    """Fields derived from a national ID number."""

    birth_date: str
    gender: str


def is_valid_national_id(value: str | None) -> bool:
    """Return whether ``value`` is exactly 14 ASCII digits."""
    return (
        value is not None
        and len(value) == NATIONAL_ID_LENGTH
        and value.isascii()
        and value.isdigit()
    )


def decode_national_id(national_id: str) -> NationalIdInfo:
    """Derive birth date and gender from a national ID number.

    Args:
        national_id: Exactly 14 ASCII digits.

    Returns:
        Birth date formatted ``DD/MM/YYYY`` and the gender sentinel.

    Raises:
        ValueError: If ``national_id`` is not 14 ASCII digits.
    """
    if not is_valid_national_id(national_id):
        raise ValueError(f"Not a 14-digit national ID: {national_id!r}")

    yy = national_id[1:3]
    month = national_id[3:5]
    day = national_id[5:7]
    century = "19" if int(yy) > CENTURY_PIVOT else "20"

    gender = MALE if int(national_id[12]) % 2 == 1 else FEMALE
    return NationalIdInfo(birth_date=f"{day}/{month}/{century}{yy}", gender=gender)
