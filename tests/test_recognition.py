"""Tests for the recognition backends and the racing dispatcher."""

import threading
import time
from unittest.mock import patch

import httpx
import pytest
import pytesseract

from docscan.errors import RecognitionTimeoutError
from docscan.models import PreprocessedImage, RecognitionResult
from docscan.recognition.dispatcher import RecognitionDispatcher
from docscan.recognition.remote_backend import RemoteOCRBackend
from docscan.recognition.tesseract_backend import TesseractBackend
from docscan.utils.config import (
    RecognitionConfig,
    RemoteOCRConfig,
    TesseractConfig,
)


def _remote(handler, **config) -> RemoteOCRBackend:
    """Build a remote backend whose HTTP traffic goes to ``handler``."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RemoteOCRBackend(RemoteOCRConfig(api_key="test-key", **config), client)


def _ok(text: str) -> RecognitionResult:
    return RecognitionResult(success=True, text=text, backend="fake")


class TestRemoteOCRBackend:
    """Tests for the OCR.space-compatible backend."""

    def test_success(self, preprocessed_image: PreprocessedImage) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "ParsedResults": [{"ParsedText": "  KF08E1234567 \r\n"}],
                    "IsErroredOnProcessing": False,
                },
            )

        result = _remote(handler).recognize(preprocessed_image)
        assert result.success is True
        assert result.text == "KF08E1234567"
        assert result.backend == "remote"

    def test_request_form(self, preprocessed_image: PreprocessedImage) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            seen.append(request)
            return httpx.Response(200, json={"ParsedResults": [{"ParsedText": "x"}]})

        _remote(handler).recognize(preprocessed_image)
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.ocr.space/parse/image"
        assert b'name="apikey"' in request.content
        assert b"test-key" in request.content
        assert b'name="OCREngine"' in request.content
        assert b'filename="image.jpg"' in request.content

    def test_processing_error(self, preprocessed_image: PreprocessedImage) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"IsErroredOnProcessing": True, "ErrorMessage": ["E101 bad"]},
            )

        result = _remote(handler).recognize(preprocessed_image)
        assert result.success is False
        assert result.error == "E101 bad"

    def test_http_error_status(self, preprocessed_image: PreprocessedImage) -> None:
        result = _remote(lambda request: httpx.Response(500)).recognize(
            preprocessed_image
        )
        assert result.success is False
        assert result.error == "OCR API error: 500"

    def test_empty_results(self, preprocessed_image: PreprocessedImage) -> None:
        result = _remote(
            lambda request: httpx.Response(200, json={"ParsedResults": []})
        ).recognize(preprocessed_image)
        assert result.success is False
        assert result.error == "No text found in image"

    def test_non_json_body(self, preprocessed_image: PreprocessedImage) -> None:
        result = _remote(
            lambda request: httpx.Response(200, text="<html>busy</html>")
        ).recognize(preprocessed_image)
        assert result.success is False
        assert "non-JSON" in result.error

    def test_connect_error_retried(self, preprocessed_image: PreprocessedImage) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        result = _remote(handler, max_retries=2).recognize(preprocessed_image)
        assert len(calls) == 3
        assert result.success is False
        assert "unreachable" in result.error

    def test_retry_then_success(self, preprocessed_image: PreprocessedImage) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json={"ParsedResults": [{"ParsedText": "ok"}]})

        result = _remote(handler).recognize(preprocessed_image)
        assert len(calls) == 2
        assert result.text == "ok"


class TestTesseractBackend:
    """Tests for the local Tesseract backend."""

    @patch("docscan.recognition.tesseract_backend.pytesseract.image_to_string")
    def test_success(self, mock_ocr, preprocessed_image: PreprocessedImage) -> None:
        mock_ocr.return_value = "  محمد احمد \n"
        result = TesseractBackend(TesseractConfig()).recognize(preprocessed_image)
        assert result.success is True
        assert result.text == "محمد احمد"
        assert result.backend == "tesseract"
        _, kwargs = mock_ocr.call_args
        assert kwargs["lang"] == "ara+eng"
        assert kwargs["config"] == "--psm 6"

    @patch("docscan.recognition.tesseract_backend.pytesseract.image_to_string")
    def test_not_installed(
        self, mock_ocr, preprocessed_image: PreprocessedImage
    ) -> None:
        mock_ocr.side_effect = pytesseract.TesseractNotFoundError()
        result = TesseractBackend().recognize(preprocessed_image)
        assert result.success is False
        assert result.error == "Tesseract is not installed"

    @patch("docscan.recognition.tesseract_backend.pytesseract.image_to_string")
    def test_tesseract_error(
        self, mock_ocr, preprocessed_image: PreprocessedImage
    ) -> None:
        mock_ocr.side_effect = pytesseract.TesseractError(1, "bad language")
        result = TesseractBackend().recognize(preprocessed_image)
        assert result.success is False
        assert result.error.startswith("Tesseract failed")

    @patch("docscan.recognition.tesseract_backend.pytesseract.image_to_string")
    def test_blank_text(self, mock_ocr, preprocessed_image: PreprocessedImage) -> None:
        mock_ocr.return_value = " \n\f"
        result = TesseractBackend().recognize(preprocessed_image)
        assert result.success is False
        assert result.error == "No text found in image"

    def test_unreadable_image(self) -> None:
        image = PreprocessedImage(data=b"not a jpeg", width=1, height=1)
        result = TesseractBackend().recognize(image)
        assert result.success is False
        assert result.error.startswith("Cannot read image")


class TestRecognitionDispatcher:
    """Tests for racing the backends under a deadline."""

    def test_fast_backend_wins_over_blocked_one(
        self,
        backend_factory,
        release_event: threading.Event,
        preprocessed_image: PreprocessedImage,
    ) -> None:
        slow = backend_factory("remote", _ok("slow text"), release=release_event)
        fast = backend_factory("tesseract", _ok("fast text"), delay=0.2)
        dispatcher = RecognitionDispatcher([slow, fast], deadline_seconds=5)

        start = time.monotonic()
        result = dispatcher.recognize(preprocessed_image)
        assert result.text == "fast text"
        assert time.monotonic() - start < 2

    def test_failure_does_not_end_race(
        self, backend_factory, preprocessed_image: PreprocessedImage
    ) -> None:
        failing = backend_factory("remote")
        late = backend_factory("tesseract", _ok("late text"), delay=0.1)
        result = RecognitionDispatcher([failing, late]).recognize(preprocessed_image)
        assert result.success is True
        assert result.text == "late text"

    def test_blank_text_does_not_win(
        self, backend_factory, preprocessed_image: PreprocessedImage
    ) -> None:
        blank = backend_factory("remote", _ok("   "))
        late = backend_factory("tesseract", _ok("real text"), delay=0.1)
        result = RecognitionDispatcher([blank, late]).recognize(preprocessed_image)
        assert result.text == "real text"

    def test_all_fail_reports_last_error(
        self, backend_factory, preprocessed_image: PreprocessedImage
    ) -> None:
        first = backend_factory("remote")
        second = backend_factory("tesseract", delay=0.1)
        result = RecognitionDispatcher([first, second]).recognize(preprocessed_image)
        assert result.success is False
        assert result.error == "tesseract failed"

    def test_deadline_raises_timeout(
        self,
        backend_factory,
        release_event: threading.Event,
        preprocessed_image: PreprocessedImage,
    ) -> None:
        backends = [
            backend_factory("remote", _ok("a"), release=release_event),
            backend_factory("tesseract", _ok("b"), release=release_event),
        ]
        dispatcher = RecognitionDispatcher(backends, deadline_seconds=0.2)
        start = time.monotonic()
        with pytest.raises(RecognitionTimeoutError):
            dispatcher.recognize(preprocessed_image)
        assert time.monotonic() - start < 2

    def test_exception_converted_to_failure(
        self, backend_factory, preprocessed_image: PreprocessedImage
    ) -> None:
        broken = backend_factory("remote", exc=RuntimeError("kaput"))
        result = RecognitionDispatcher([broken]).recognize(preprocessed_image)
        assert result.success is False
        assert result.error == "kaput"

    def test_each_backend_gets_own_copy(
        self, backend_factory, preprocessed_image: PreprocessedImage
    ) -> None:
        first = backend_factory("remote")
        second = backend_factory("tesseract")
        RecognitionDispatcher([first, second]).recognize(preprocessed_image)
        assert first.calls[0] == preprocessed_image
        assert first.calls[0] is not preprocessed_image
        assert first.calls[0] is not second.calls[0]

    def test_no_backends(self, preprocessed_image: PreprocessedImage) -> None:
        result = RecognitionDispatcher([]).recognize(preprocessed_image)
        assert result.success is False

    def test_from_config_respects_enabled_flags(self) -> None:
        config = RecognitionConfig(
            deadline_seconds=3, remote=RemoteOCRConfig(enabled=False)
        )
        dispatcher = RecognitionDispatcher.from_config(config)
        assert [b.name for b in dispatcher.backends] == ["tesseract"]
        assert dispatcher.deadline_seconds == 3
