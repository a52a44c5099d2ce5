"""Tests for turning the in-page reading into page signals."""

from __future__ import annotations

from xereta.browser import page_signals


class TestPageSignalsFromRaw:
    def test_full_reading(self) -> None:
        raw = {
            "localStorageUsage": 2048,
            "canvasElements": 2,
            "cookieString": "_ga=GA1.2; _fbp=fb.1;theme=dark",
            "canvas": [
                {
                    "id": "canvas-0",
                    "operations": {"text": True, "gradient": True, "imageData": True, "readback": True},
                    "hidden": False,
                }
            ],
        }
        signals = page_signals.page_signals_from_raw(raw)
        assert signals.local_storage_usage == 2048
        assert signals.canvas_elements == 2
        assert signals.cookies == ["_ga=GA1.2", "_fbp=fb.1", "theme=dark"]
        assert signals.cookie_count == 3
        assert signals.canvas_fingerprinting.suspicious_score == 4
        assert signals.canvas_fingerprinting.potential_fingerprinting is True

    def test_empty_page(self) -> None:
        signals = page_signals.page_signals_from_raw({"localStorageUsage": 0, "cookieString": "", "canvas": []})
        assert signals.cookie_count == 0
        assert signals.cookies == []
        assert signals.canvas_fingerprinting.details == []

    def test_missing_keys_and_negative_usage(self) -> None:
        signals = page_signals.page_signals_from_raw({"localStorageUsage": -2})
        assert signals.local_storage_usage == 0
        assert signals.canvas_elements == 0
        assert signals.canvas_fingerprinting.suspicious_score == 0

    def test_wire_shape(self) -> None:
        wire = page_signals.page_signals_from_raw({"cookieString": "a=1"}).to_wire()
        assert set(wire) == {"localStorageUsage", "canvasElements", "cookieCount", "cookies", "canvasFingerprinting"}
        assert set(wire["canvasFingerprinting"]) == {"details", "suspiciousScore", "potentialFingerprinting"}
