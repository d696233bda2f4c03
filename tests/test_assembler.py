"""Tests for turning parsed fields into extraction results."""

from docscan.errors import ErrorKind
from docscan.extraction.assembler import ResultAssembler
from docscan.models import (
    MALE,
    UNKNOWN,
    DocumentType,
    IdentityCardFields,
    VehicleIdentifierFields,
)
from docscan.parsing.vehicle_parser import VehicleMatch
from docscan.scoring.confidence import ConfidenceScorer
from docscan.utils.config import ScoringConfig

NAME = "محمد احمد علي حسن"


class TestAssembleIdentityCard:
    """Tests for assemble_identity_card."""

    def setup_method(self) -> None:
        self.assembler = ResultAssembler(ConfidenceScorer())

    def test_full_card_succeeds(self) -> None:
        fields = IdentityCardFields(
            name=NAME,
            national_id="29503150123456",
            address="الجيزة",
            phone="01012345678",
        )
        result = self.assembler.assemble_identity_card(fields, 25)
        assert result.success is True
        assert result.confidence == 100
        assert result.error_kind is None
        assert result.processing_time_ms == 25
        assert result.fields.birth_date == "15/03/1995"
        assert result.fields.gender == MALE

    def test_national_id_alone_succeeds(self) -> None:
        fields = IdentityCardFields(
            name=UNKNOWN, national_id="29503150123456", address=UNKNOWN
        )
        result = self.assembler.assemble_identity_card(fields, 1)
        assert result.success is True
        assert result.confidence == 40

    def test_name_only_is_low_confidence(self) -> None:
        fields = IdentityCardFields(name=NAME, national_id="", address=UNKNOWN)
        result = self.assembler.assemble_identity_card(fields, 1)
        assert result.success is False
        assert result.error_kind is ErrorKind.LOW_CONFIDENCE
        assert result.confidence == 30
        assert result.fields.name == NAME
        assert result.fields.birth_date is None
        assert result.fields.gender is None

    def test_missing_national_id_never_succeeds(self) -> None:
        fields = IdentityCardFields(
            name=NAME, national_id="", address="الجيزة", phone="01012345678"
        )
        result = self.assembler.assemble_identity_card(fields, 1)
        assert result.success is False
        assert result.confidence == 60
        assert result.error_kind is ErrorKind.LOW_CONFIDENCE

    def test_malformed_national_id_never_succeeds(self) -> None:
        fields = IdentityCardFields(name=NAME, national_id="123", address="الجيزة")
        result = self.assembler.assemble_identity_card(fields, 1)
        assert result.success is False
        assert result.fields.birth_date is None

    def test_nothing_resolved(self) -> None:
        fields = IdentityCardFields(name=UNKNOWN, national_id="", address=UNKNOWN)
        result = self.assembler.assemble_identity_card(fields, 1, raw_text="???")
        assert result.success is False
        assert result.confidence == 0
        assert result.fields is None
        assert result.error_kind is ErrorKind.NO_FIELDS_RESOLVED
        assert result.raw_text == "???"

    def test_below_custom_threshold(self) -> None:
        assembler = ResultAssembler(ConfidenceScorer(ScoringConfig(min_confidence=80)))
        fields = IdentityCardFields(
            name=NAME, national_id="29503150123456", address=UNKNOWN
        )
        result = assembler.assemble_identity_card(fields, 1)
        assert result.success is False
        assert result.confidence == 70
        assert result.error_kind is ErrorKind.LOW_CONFIDENCE


class TestAssembleVehicle:
    """Tests for assemble_vehicle."""

    def setup_method(self) -> None:
        self.assembler = ResultAssembler(ConfidenceScorer())

    def test_pattern_match(self) -> None:
        result = self.assembler.assemble_vehicle(
            DocumentType.MOTOR_FINGERPRINT,
            VehicleMatch("KF08E1234567", "honda", True),
            3,
        )
        assert result.success is True
        assert result.confidence == 90
        assert result.fields == VehicleIdentifierFields(code="KF08E1234567")

    def test_fallback_succeeds_at_default_threshold(self) -> None:
        result = self.assembler.assemble_vehicle(
            DocumentType.CHASSIS_NUMBER, VehicleMatch("XYZ123456", None, False), 3
        )
        assert result.success is True
        assert result.confidence == 50

    def test_fallback_below_custom_threshold(self) -> None:
        assembler = ResultAssembler(ConfidenceScorer(ScoringConfig(min_confidence=60)))
        result = assembler.assemble_vehicle(
            DocumentType.CHASSIS_NUMBER, VehicleMatch("XYZ123456", None, False), 3
        )
        assert result.success is False
        assert result.error_kind is ErrorKind.LOW_CONFIDENCE
        assert result.fields.code == "XYZ123456"

    def test_no_match(self) -> None:
        result = self.assembler.assemble_vehicle(
            DocumentType.MOTOR_FINGERPRINT, None, 3
        )
        assert result.success is False
        assert result.confidence == 0
        assert result.error == "No valid motor fingerprint found"
        assert result.error_kind is ErrorKind.NO_FIELDS_RESOLVED


class TestFailure:
    """Tests for hard failures."""

    def test_zero_confidence_and_no_fields(self) -> None:
        assembler = ResultAssembler(ConfidenceScorer())
        result = assembler.failure(
            DocumentType.CHASSIS_NUMBER, "boom", ErrorKind.TIMEOUT, 15000
        )
        assert result.success is False
        assert result.confidence == 0
        assert result.fields is None
        assert result.error == "boom"
        assert result.error_kind is ErrorKind.TIMEOUT
        assert result.processing_time_ms == 15000
