"""Tests for canvas instrumentation and the fingerprinting heuristic."""

from __future__ import annotations

from typing import Any

import pytest

from xereta.canvas import detector as detector_mod
from xereta.canvas import script as canvas_script
from xereta.models import canvas as canvas_models


class FakeContext2D:
    """Records the drawing calls made on it."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fill_style = "#000"

    def fill_text(self, text: str, *args: Any) -> None:
        self.calls.append(f"fill_text:{text}")

    def stroke_text(self, text: str, *args: Any) -> None:
        self.calls.append(f"stroke_text:{text}")

    def create_linear_gradient(self, *args: Any) -> str:
        self.calls.append("create_linear_gradient")
        return "linear-gradient"

    def create_radial_gradient(self, *args: Any) -> str:
        self.calls.append("create_radial_gradient")
        return "radial-gradient"

    def get_image_data(self, *args: Any) -> list[int]:
        self.calls.append("get_image_data")
        return [1, 2, 3, 4]

    def fill_rect(self, *args: Any) -> None:
        self.calls.append("fill_rect")


class FakeCanvas:
    tag_name = "CANVAS"

    def __init__(
        self,
        id: str = "",
        *,
        width: int = 300,
        height: int = 150,
        parent: Any = "body",
        style: dict[str, str] | None = None,
    ) -> None:
        self.id = id
        self.width = width
        self.height = height
        self.parent = parent
        self.style = style or {"visibility": "visible", "display": "inline"}
        self.context = FakeContext2D()
        self.children: list[Any] = []

    def computed_style(self, prop: str) -> str:
        return self.style.get(prop, "")

    def get_context(self, kind: str, **attributes: Any) -> FakeContext2D | None:
        return self.context if kind == "2d" else None

    def to_data_url(self, *args: Any) -> str:
        return "data:image/png;base64,AAAA"


class FakeNode:
    def __init__(self, tag_name: str = "DIV", children: list[Any] | None = None) -> None:
        self.tag_name = tag_name
        self.children = children or []


def _record(ops: int = 0, hidden: bool = False) -> canvas_models.CanvasRecord:
    flags = [i < ops for i in range(4)]
    return canvas_models.CanvasRecord(
        id="c",
        operations=canvas_models.CanvasOperations(
            text=flags[0], gradient=flags[1], image_data=flags[2], readback=flags[3]
        ),
        hidden=hidden,
    )


# ── Instrumentation ─────────────────────────────────────────────


class TestInstrumentation:
    def test_operations_flip_flags(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        canvas = detector.observe(FakeCanvas("fp"))
        ctx = canvas.get_context("2d")
        ctx.fill_text("Cwm fjordbank", 2, 15)
        ctx.create_linear_gradient(0, 0, 10, 10)
        ctx.get_image_data(0, 0, 1, 1)
        canvas.to_data_url()
        ops = canvas.record.operations
        assert (ops.text, ops.gradient, ops.image_data, ops.readback) == (True, True, True, True)

    def test_each_operation_maps_to_its_flag(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        canvas = detector.observe(FakeCanvas())
        canvas.get_context("2d").stroke_text("x", 0, 0)
        assert canvas.record.operations.model_dump() == {
            "text": True, "gradient": False, "image_data": False, "readback": False,
        }
        canvas.get_context("2d").create_radial_gradient(0, 0, 1, 0, 0, 2)
        assert canvas.record.operations.gradient is True

    def test_results_are_passed_through(self) -> None:
        element = FakeCanvas()
        canvas = detector_mod.CanvasFingerprintDetector().observe(element)
        ctx = canvas.get_context("2d")
        assert ctx.get_image_data(0, 0, 1, 1) == [1, 2, 3, 4]
        assert ctx.create_linear_gradient(0, 0, 1, 1) == "linear-gradient"
        assert canvas.to_data_url() == "data:image/png;base64,AAAA"
        assert element.context.calls == ["get_image_data", "create_linear_gradient"]

    def test_other_members_delegate(self) -> None:
        element = FakeCanvas(width=640)
        canvas = detector_mod.CanvasFingerprintDetector().observe(element)
        ctx = canvas.get_context("2d")
        ctx.fill_rect(0, 0, 1, 1)
        ctx.fill_style = "#f60"
        canvas.width = 320
        assert element.context.fill_style == "#f60"
        assert element.width == 320
        assert canvas.width == 320
        assert canvas.record.operations.count() == 0

    def test_flags_are_one_way(self) -> None:
        canvas = detector_mod.CanvasFingerprintDetector().observe(FakeCanvas())
        canvas.to_data_url()
        canvas.get_context("2d").fill_rect(0, 0, 1, 1)
        assert canvas.record.operations.readback is True

    def test_non_2d_context_not_wrapped(self) -> None:
        canvas = detector_mod.CanvasFingerprintDetector().observe(FakeCanvas())
        assert canvas.get_context("webgl") is None

    def test_will_read_frequently_recorded(self) -> None:
        canvas = detector_mod.CanvasFingerprintDetector().observe(FakeCanvas())
        canvas.get_context("2d", will_read_frequently=True)
        assert canvas.record.attributes.will_read_frequently is True


# ── Observation ─────────────────────────────────────────────────


class TestObservation:
    @pytest.mark.parametrize(
        ("parent", "style", "hidden"),
        [
            ("body", {"visibility": "visible", "display": "block"}, False),
            (None, {"visibility": "visible", "display": "block"}, True),
            ("body", {"visibility": "hidden", "display": "block"}, True),
            ("body", {"visibility": "visible", "display": "none"}, True),
        ],
    )
    def test_hidden_rule(self, parent: object, style: dict[str, str], hidden: bool) -> None:
        canvas = detector_mod.CanvasFingerprintDetector().observe(FakeCanvas(parent=parent, style=style))
        assert canvas.record.hidden is hidden

    def test_hidden_computed_once(self) -> None:
        element = FakeCanvas()
        canvas = detector_mod.CanvasFingerprintDetector().observe(element)
        element.parent = None
        assert canvas.record.hidden is False

    def test_record_captures_size_and_id(self) -> None:
        canvas = detector_mod.CanvasFingerprintDetector().observe(FakeCanvas("chart", width=16, height=8))
        assert canvas.record.id == "chart"
        assert (canvas.record.size.width, canvas.record.size.height) == (16, 8)

    def test_generated_ids_for_anonymous_canvases(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        detector.observe_all([FakeCanvas(), FakeCanvas()])
        assert [r.id for r in detector.records] == ["canvas-0", "canvas-1"]

    def test_observe_twice_returns_same_wrapper(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        element = FakeCanvas()
        assert detector.observe(element) is detector.observe(element)
        assert len(detector.records) == 1

    def test_dom_insertions_observed(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        nested = FakeCanvas("nested")
        found = detector.on_nodes_added([FakeNode(children=[FakeNode(children=[nested])]), FakeNode("P"), FakeCanvas("top")])
        assert sorted(w.record.id for w in found) == ["nested", "top"]
        assert len(detector.records) == 2

    def test_large_insertion_batch_walked_breadth_first(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        wrappers = [FakeNode(children=[FakeCanvas(f"inner-{i}")]) for i in range(3000)]
        deep: Any = FakeCanvas("deepest")
        for _ in range(3000):
            deep = FakeNode(children=[deep])
        found = detector.on_nodes_added([*wrappers, FakeCanvas("top"), deep])
        ids = [w.record.id for w in found]
        assert ids[0] == "top"
        assert ids[1:3001] == [f"inner-{i}" for i in range(3000)]
        assert ids[-1] == "deepest"
        assert len(detector.records) == 3002

    def test_records_never_removed(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        element = FakeCanvas()
        detector.observe(element)
        element.parent = None
        detector.on_nodes_added([])
        assert len(detector.snapshot().details) == 1


# ── Scoring ─────────────────────────────────────────────────────


class TestSummarize:
    def test_all_operations_and_hidden_is_six(self) -> None:
        assert detector_mod.summarize_canvases([_record(4, hidden=True)]).suspicious_score == 6

    def test_score_three_is_not_fingerprinting(self) -> None:
        result = detector_mod.summarize_canvases([_record(3)])
        assert result.suspicious_score == 3
        assert result.potential_fingerprinting is False

    def test_score_four_is_fingerprinting(self) -> None:
        result = detector_mod.summarize_canvases([_record(2, hidden=True)])
        assert result.suspicious_score == 4
        assert result.potential_fingerprinting is True

    def test_scores_sum_across_canvases(self) -> None:
        result = detector_mod.summarize_canvases([_record(1), _record(1), _record(0, hidden=True)])
        assert result.suspicious_score == 4
        assert result.potential_fingerprinting is True

    def test_empty(self) -> None:
        result = detector_mod.summarize_canvases([])
        assert (result.suspicious_score, result.potential_fingerprinting, result.details) == (0, False, [])

    def test_detector_snapshot_end_to_end(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        canvas = detector.observe(FakeCanvas(parent=None))
        canvas.get_context("2d").fill_text("fp", 0, 0)
        canvas.to_data_url()
        snapshot = detector.snapshot()
        assert snapshot.suspicious_score == 4
        assert snapshot.potential_fingerprinting is True

    def test_snapshot_is_a_copy(self) -> None:
        detector = detector_mod.CanvasFingerprintDetector()
        canvas = detector.observe(FakeCanvas())
        snapshot = detector.snapshot()
        canvas.to_data_url()
        assert snapshot.details[0].operations.readback is False


# ── In-page bridge ──────────────────────────────────────────────


class TestPageRecords:
    def test_camel_case_records_parsed(self) -> None:
        raw = [
            {
                "id": "canvas-0",
                "size": {"width": 220, "height": 30},
                "operations": {"text": True, "gradient": True, "imageData": False, "readback": True},
                "hidden": True,
                "attributes": {"willReadFrequently": False},
            }
        ]
        result = canvas_script.fingerprint_from_page(raw)
        assert result.details[0].operations.image_data is False
        assert result.suspicious_score == 5
        assert result.potential_fingerprinting is True

    def test_malformed_entries_skipped(self) -> None:
        assert canvas_script.records_from_page([{"size": "big"}, "nope"]) == []

    @pytest.mark.parametrize("raw", [None, {}, "x"])
    def test_non_list_snapshot(self, raw: object) -> None:
        assert canvas_script.records_from_page(raw) == []

    def test_init_script_hooks_all_operations(self) -> None:
        for name in ("fillText", "strokeText", "createLinearGradient", "createRadialGradient", "getImageData", "toDataURL", "MutationObserver"):
            assert name in canvas_script.CANVAS_INIT_SCRIPT
