"""Field parser for engraved motor fingerprints and chassis (VIN) numbers.

Formats are data: each document subtype owns an ordered list of
``VehiclePattern`` entries. New manufacturer shapes are added with
``register_pattern`` without touching the matching logic.
"""

import re
from dataclasses import dataclass

from docscan.models import DocumentType
from docscan.utils.logger import get_logger

logger = get_logger(__name__)

_SEPARATOR_RE = re.compile(r"[^A-Z0-9]+")

VIN_LENGTH = 17

# A label read together with the VIN, as in "VIN1HGCM82633A004352".
_LABELLED_VIN_RE = re.compile(r"(?:VIN|CHASSIS|FRAME|NO)+([A-HJ-NPR-Z0-9]{17})")


@dataclass(frozen=True)
class VehiclePattern:
    """A named identifier shape. Lower ``priority`` values are tried first."""

    name: str
    regex: re.Pattern[str]
    priority: int


@dataclass(frozen=True)
class VehicleMatch:
    """A parsed vehicle identifier.

    ``pattern_matched`` is false when the code is the cleaned text taken
    verbatim because no pattern matched.
    """

    code: str
    pattern_name: str | None
    pattern_matched: bool


MOTOR_PATTERNS: tuple[VehiclePattern, ...] = (
    VehiclePattern("honda", re.compile(r"[A-Z]{2}\d{2}E\d{6,8}"), 10),
    VehiclePattern("suzuki", re.compile(r"[A-Z]\d{2}[A-Z]\d{6}"), 20),
    VehiclePattern("yamaha", re.compile(r"[A-Z0-9]{10,15}"), 30),
    VehiclePattern("standard", re.compile(r"[A-Z0-9]{8,20}"), 40),
    VehiclePattern("generic", re.compile(r"[A-Z0-9]{6,25}"), 50),
)

# VIN alphabet excludes I, O and Q, which are too easily read as 1 and 0.
CHASSIS_PATTERNS: tuple[VehiclePattern, ...] = (
    VehiclePattern("vin17", re.compile(r"[A-HJ-NPR-Z0-9]{17}"), 10),
    VehiclePattern("japanese", re.compile(r"[A-Z]{3}\d{6,10}"), 20),
    VehiclePattern("chinese", re.compile(r"L[A-Z0-9]{16}"), 30),
    VehiclePattern("short", re.compile(r"[A-Z0-9]{10,16}"), 40),
    VehiclePattern("generic", re.compile(r"[A-Z0-9]{8,20}"), 50),
)

# Accepted length of the verbatim cleaned-text fallback, inclusive.
FALLBACK_WINDOWS: dict[DocumentType, tuple[int, int]] = {
    DocumentType.MOTOR_FINGERPRINT: (6, 25),
    DocumentType.CHASSIS_NUMBER: (8, 25),
}

_DEFAULT_PATTERNS: dict[DocumentType, tuple[VehiclePattern, ...]] = {
    DocumentType.MOTOR_FINGERPRINT: MOTOR_PATTERNS,
    DocumentType.CHASSIS_NUMBER: CHASSIS_PATTERNS,
}


def clean_identifier_text(text: str) -> str:
    """Uppercase ``text`` and drop every non-alphanumeric character."""
    return _SEPARATOR_RE.sub("", text.upper())


class VehicleIdentifierParser:
    """Extracts a single motor fingerprint or chassis number from text.

    Args:
        document_type: Either ``MOTOR_FINGERPRINT`` or ``CHASSIS_NUMBER``.
        patterns: Pattern list overriding the subtype defaults.
    """

    def __init__(
        self,
        document_type: DocumentType,
        patterns: list[VehiclePattern] | None = None,
    ) -> None:
        if document_type not in _DEFAULT_PATTERNS:
            raise ValueError(f"Not a vehicle identifier type: {document_type}")
        self.document_type = document_type
        source = patterns if patterns is not None else _DEFAULT_PATTERNS[document_type]
        self.patterns = sorted(source, key=lambda p: p.priority)

    def register_pattern(self, pattern: VehiclePattern) -> None:
        """Add a pattern, keeping the list ordered by priority."""
        self.patterns.append(pattern)
        self.patterns.sort(key=lambda p: p.priority)

    def parse(self, text: str) -> VehicleMatch | None:
        """Parse recognized text into a vehicle identifier.

        The patterns are tried against the individual tokens of the text
        first, so label words never bleed into a code. Only when no
        pattern matches any token is the fully joined text tried, which
        recovers codes split by stray spaces. Within a pass the first
        pattern with a match wins and its longest match is taken; for
        chassis numbers a 17-character candidate from any pattern beats
        every other length.

        Args:
            text: Raw recognizer output.

        Returns:
            The parsed identifier, or ``None`` when nothing plausible
            was found.
        """
        segments = [s for s in _SEPARATOR_RE.split(text.upper()) if s]
        cleaned = "".join(segments)

        for sources in (segments, [cleaned]):
            match = self._best_match(sources)
            if match is not None:
                return match

        low, high = FALLBACK_WINDOWS[self.document_type]
        if low <= len(cleaned) <= high:
            logger.debug("Using cleaned text as vehicle identifier")
            return VehicleMatch(cleaned, None, False)

        logger.debug("No plausible vehicle identifier in %d characters", len(cleaned))
        return None

    def _best_match(self, sources: list[str]) -> VehicleMatch | None:
        candidates = [
            (pattern, [m for source in sources for m in pattern.regex.findall(source)])
            for pattern in self.patterns
        ]

        if self.document_type is DocumentType.CHASSIS_NUMBER:
            for source in sources:
                labelled = _LABELLED_VIN_RE.fullmatch(source)
                if labelled:
                    logger.debug("VIN found behind a label")
                    return VehicleMatch(labelled.group(1), "vin17", True)

            for pattern, matches in candidates:
                for match in matches:
                    if len(match) == VIN_LENGTH:
                        logger.debug("VIN-length chassis match via %s", pattern.name)
                        return VehicleMatch(match, pattern.name, True)

        for pattern, matches in candidates:
            if matches:
                logger.debug("Vehicle identifier matched by %s", pattern.name)
                return VehicleMatch(max(matches, key=len), pattern.name, True)
        return None
