"""Tests for the Tesseract engine and the slip processor."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
import pytesseract

from slipledger.errors import ImageLoadError, RecognitionError
from slipledger.ocr.job_runner import OcrJobRunner
from slipledger.ocr.slip_processor import SlipProcessor, build_runner
from slipledger.ocr.tesseract_engine import TesseractEngine
from slipledger.utils.config import AppConfig


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract output data."""
    return {
        "text": ["", "จำนวนเงิน", "500.00", "", "บาท"],
        "conf": ["-1", "95", "88", "-1", "72"],
    }


class TestTesseractEngine:
    """Tests for the TesseractEngine class (mocked)."""

    @patch("slipledger.ocr.tesseract_engine.pytesseract")
    def test_recognize(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "จำนวนเงิน 500.00 บาท"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        engine = TesseractEngine()
        result = engine.recognize(np.zeros((100, 200), dtype=np.uint8))

        assert result.text == "จำนวนเงิน 500.00 บาท"
        assert result.confidence == pytest.approx(85.0)
        _, kwargs = mock_pytesseract.image_to_string.call_args
        assert kwargs["lang"] == "eng+tha"
        assert kwargs["config"] == "--psm 6"

    @patch("slipledger.ocr.tesseract_engine.pytesseract")
    def test_no_words_gives_none_confidence(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = ""
        mock_pytesseract.image_to_data.return_value = {"text": ["", " "], "conf": ["-1", "0"]}

        result = TesseractEngine().recognize(np.zeros((10, 10), dtype=np.uint8))
        assert result.text == ""
        assert result.confidence is None

    @patch("slipledger.ocr.tesseract_engine.pytesseract")
    def test_progress_reported(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "x"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()

        engine = TesseractEngine()
        seen: list[float] = []
        engine.progress_handler = seen.append
        engine.recognize(np.zeros((10, 10), dtype=np.uint8))
        assert seen == [0.0, 1.0]

    @patch("slipledger.ocr.tesseract_engine.pytesseract")
    def test_tesseract_error_wrapped(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.TesseractError = pytesseract.TesseractError
        mock_pytesseract.image_to_string.side_effect = pytesseract.TesseractError(1, "boom")

        with pytest.raises(RecognitionError, match="Tesseract failed"):
            TesseractEngine().recognize(np.zeros((10, 10), dtype=np.uint8))

    @patch("slipledger.ocr.tesseract_engine.pytesseract")
    def test_custom_settings(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "text"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()

        engine = TesseractEngine(tesseract_cmd="/opt/tesseract", lang="tha", psm=4)
        engine.recognize(np.zeros((10, 10), dtype=np.uint8))

        assert mock_pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract"
        _, kwargs = mock_pytesseract.image_to_data.call_args
        assert kwargs["lang"] == "tha"
        assert kwargs["config"] == "--psm 4"

    def test_closed_engine_rejects_work(self) -> None:
        engine = TesseractEngine()
        engine.progress_handler = lambda p: None
        engine.close()
        assert engine.closed is True
        assert engine.progress_handler is None
        with pytest.raises(RecognitionError):
            engine.recognize(np.zeros((10, 10), dtype=np.uint8))


class TestSlipProcessor:
    """Tests for end-to-end slip scanning with a fake engine."""

    def test_scan_bytes(self, png_bytes: bytes, fake_engine) -> None:
        runner = OcrJobRunner(lambda: fake_engine)
        processor = SlipProcessor(AppConfig(), runner=runner)

        scan = processor.scan(png_bytes, "slip.png")
        runner.close()

        assert scan.source_file == "slip.png"
        assert scan.parse_result.amount == 1250.0
        assert scan.parse_result.date == "2026-02-22"
        assert scan.parse_result.inferred_type == "expense"
        assert scan.quality_metrics.sharpness_before >= 0
        assert fake_engine.calls == 1

    def test_scan_path_with_progress(self, tmp_path: Path, png_bytes: bytes, fake_engine) -> None:
        path = tmp_path / "slip.png"
        path.write_bytes(png_bytes)
        seen: list[float] = []

        with OcrJobRunner(lambda: fake_engine) as runner:
            processor = SlipProcessor(AppConfig(), runner=runner)
            scan = processor.scan(path, path.name, on_progress=seen.append)

        assert scan.parse_result.amount == 1250.0
        assert seen == [0.0, 1.0]

    def test_engine_receives_preprocessed_gray_image(self, png_bytes: bytes) -> None:
        engine = MagicMock()
        engine.recognize.return_value.text = ""
        engine.recognize.return_value.confidence = None

        with OcrJobRunner(lambda: engine) as runner:
            SlipProcessor(AppConfig(), runner=runner).scan(png_bytes)

        image = engine.recognize.call_args[0][0]
        assert image.ndim == 2
        assert image.dtype == np.uint8

    def test_undecodable_bytes(self, fake_engine) -> None:
        with OcrJobRunner(lambda: fake_engine) as runner:
            processor = SlipProcessor(AppConfig(), runner=runner)
            with pytest.raises(ImageLoadError):
                processor.scan(b"definitely not an image")
        assert fake_engine.calls == 0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ImageLoadError):
            SlipProcessor.load_image(tmp_path / "missing.png")

    def test_load_image_returns_bgr(self, png_bytes: bytes) -> None:
        image = SlipProcessor.load_image(png_bytes)
        assert image.shape == (200, 300, 3)

    def test_injected_runner_not_closed(self, fake_engine) -> None:
        runner = OcrJobRunner(lambda: fake_engine)
        SlipProcessor(AppConfig(), runner=runner).close()
        runner.run(np.zeros((10, 10), dtype=np.uint8))
        runner.close()

    def test_owned_runner_closed(self) -> None:
        processor = SlipProcessor(AppConfig())
        processor.close()
        with pytest.raises(RuntimeError):
            processor.runner.submit(np.zeros((10, 10), dtype=np.uint8))

    @patch("slipledger.ocr.slip_processor.TesseractEngine")
    def test_build_runner_uses_ocr_settings(self, mock_engine_cls: MagicMock) -> None:
        mock_engine_cls.return_value.recognize.return_value.text = "Amount 12.00"
        mock_engine_cls.return_value.recognize.return_value.confidence = 50.0
        config = AppConfig(ocr={"lang": "tha", "psm": 4, "tesseract_cmd": "/bin/tess"})

        with build_runner(config) as runner:
            result = runner.run(np.zeros((10, 10), dtype=np.uint8))

        mock_engine_cls.assert_called_once_with(tesseract_cmd="/bin/tess", lang="tha", psm=4)
        assert result.amount == 12.0
