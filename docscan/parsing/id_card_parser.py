"""Field parser for national identity cards.

Turns raw, possibly noisy recognizer output into name, national ID,
address and phone candidates using ordered pattern strategies.
"""

import re

from docscan.models import UNKNOWN, IdentityCardFields
from docscan.utils.logger import get_logger

from .digit_correction import correct_digits

logger = get_logger(__name__)

_NATIONAL_ID_RE = re.compile(r"(?<!\d)\d{14}(?!\d)", re.ASCII)
_LOOSE_ID_RE = re.compile(r"[0-9IQ]{10,17}")
_PHONE_RE = re.compile(r"(?<!\d)01[0-9]{9}(?!\d)", re.ASCII)
_NON_DIGIT_RE = re.compile(r"[^0-9]")
_LETTER_RE = re.compile(r"[^\W\d_]")
_DIGIT_RE = re.compile(r"\d")

_SCRIPT_RE = re.compile(r"[\u0600-\u06FF]")
_NON_SCRIPT_RE = re.compile(r"[^\u0600-\u06FF\s]")
_NON_SCRIPT_ADDRESS_RE = re.compile(r"[^\u0600-\u06FF\s\-]")
_SPACES_RE = re.compile(r"[ \t]+")

NAME_MIN_LENGTH = 5
NAME_MAX_LENGTH = 50
ADDRESS_MIN_LENGTH = 5
ADDRESS_SEPARATOR = " - "

GOVERNORATES: tuple[str, ...] = (
    "القاهرة",
    "الجيزة",
    "الإسكندرية",
    "الاسكندرية",
    "الدقهلية",
    "البحر الأحمر",
    "البحيرة",
    "الفيوم",
    "الغربية",
    "الإسماعيلية",
    "الاسماعيلية",
    "المنوفية",
    "المنيا",
    "القليوبية",
    "الوادي الجديد",
    "السويس",
    "أسوان",
    "اسوان",
    "أسيوط",
    "اسيوط",
    "بني سويف",
    "بورسعيد",
    "دمياط",
    "الشرقية",
    "جنوب سيناء",
    "كفر الشيخ",
    "مطروح",
    "الأقصر",
    "الاقصر",
    "قنا",
    "شمال سيناء",
    "سوهاج",
)


def _clean(text: str, pattern: re.Pattern[str]) -> str:
    return _SPACES_RE.sub(" ", pattern.sub("", text)).strip()


class IdCardParser:
    """Extracts identity card fields from recognized text."""

    def parse(self, text: str) -> IdentityCardFields:
        """Parse recognized text into identity card fields.

        Unresolved name and address are set to ``UNKNOWN``, an unresolved
        national ID to ``""`` and an unresolved phone stays ``None``.

        Args:
            text: Raw recognizer output, possibly multi-line.

        Returns:
            Parsed fields without the decoded birth date and gender.
        """
        corrected = correct_digits(text)
        lines = [line.strip() for line in corrected.splitlines() if line.strip()]

        national_id = self.find_national_id(corrected, lines)
        phone = self.find_phone(corrected)

        script_lines = [line for line in lines if _SCRIPT_RE.search(line)]
        name_line = self.find_name_line(script_lines)
        name = _clean(name_line, _NON_SCRIPT_RE) if name_line else ""
        address = self.find_address(script_lines, name_line)

        fields = IdentityCardFields(
            name=name or UNKNOWN,
            national_id=national_id,
            address=address or UNKNOWN,
            phone=phone,
        )
        logger.debug(
            "Parsed identity card: id=%s name=%s address=%s phone=%s",
            bool(fields.national_id),
            fields.name != UNKNOWN,
            fields.address != UNKNOWN,
            fields.phone is not None,
        )
        return fields

    def find_national_id(self, text: str, lines: list[str]) -> str:
        """Locate the 14-digit national ID.

        Strategies, in order: a strict 14-digit run; loose 10-17 character
        candidates reduced to their digits; a letter-free line whose digits
        collapse to exactly 14 (IDs read with spaces between digits).
        The first hit wins.
        """
        match = _NATIONAL_ID_RE.search(text)
        if match:
            return match.group(0)

        for candidate in _LOOSE_ID_RE.findall(text):
            digits = _NON_DIGIT_RE.sub("", candidate)
            if len(digits) == 14:
                logger.debug("National ID recovered from loose candidate")
                return digits

        for line in lines:
            if _LETTER_RE.search(line):
                continue
            digits = _NON_DIGIT_RE.sub("", line)
            if len(digits) == 14:
                logger.debug("National ID recovered from spaced digits")
                return digits

        return ""

    def find_phone(self, text: str) -> str | None:
        """Return the first mobile number (``01`` followed by 9 digits)."""
        match = _PHONE_RE.search(text)
        return match.group(0) if match else None

    def find_name_line(self, script_lines: list[str]) -> str | None:
        """Pick the longest digit-free script line within the name window."""
        candidates = [
            line
            for line in script_lines
            if not _DIGIT_RE.search(line)
            and NAME_MIN_LENGTH < len(line) < NAME_MAX_LENGTH
        ]
        if not candidates:
            return None
        return max(candidates, key=len)

    def find_address(self, script_lines: list[str], name_line: str | None) -> str:
        """Build the address from the script lines left after the name.

        A fragment naming a known governorate is preferred on its own;
        otherwise all fragments are joined.
        """
        fragments = [
            line
            for line in script_lines
            if line != name_line and len(line) > ADDRESS_MIN_LENGTH
        ]
        if not fragments:
            return ""

        for fragment in fragments:
            if any(gov in fragment for gov in GOVERNORATES):
                return _clean(fragment, _NON_SCRIPT_ADDRESS_RE)

        return _clean(ADDRESS_SEPARATOR.join(fragments), _NON_SCRIPT_ADDRESS_RE)
