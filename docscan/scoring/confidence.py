"""Confidence scoring for extracted fields.

Identity cards score by which fields were recovered, each field adding
a fixed weight, so a score never drops when another field is found.
Vehicle identifiers score high for a pattern match and lower for the
cleaned-text fallback.
"""

from docscan.models import UNKNOWN, IdentityCardFields
from docscan.parsing.national_id import is_valid_national_id
from docscan.parsing.vehicle_parser import VehicleMatch
from docscan.utils.config import ScoringConfig


def _resolved(value: str | None) -> bool:
    return bool(value) and value != UNKNOWN


class ConfidenceScorer:
    """Assigns 0-100 confidence scores to extraction results.

    Args:
        config: Weights and thresholds.
    """

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()

    def score_identity_card(self, fields: IdentityCardFields) -> int:
        """Score identity card fields by the weights of those recovered."""
        score = 0
        if is_valid_national_id(fields.national_id):
            score += self.config.national_id_weight
        if _resolved(fields.name):
            score += self.config.name_weight
        if _resolved(fields.address):
            score += self.config.address_weight
        if _resolved(fields.phone):
            score += self.config.phone_weight
        return max(0, min(100, score))

    def score_vehicle(self, match: VehicleMatch | None) -> int:
        """Score a vehicle identifier by how it was found."""
        if match is None or not match.code:
            return 0
        if match.pattern_matched:
            return self.config.pattern_confidence
        return self.config.fallback_confidence

    def meets_threshold(self, score: int) -> bool:
        """Whether ``score`` is high enough to count as a success."""
        return score >= self.config.min_confidence
