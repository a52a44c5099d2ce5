"""
Canvas fingerprinting heuristic.

Each observed canvas gets a :class:`CanvasRecord` and is handed back
wrapped in :class:`InstrumentedCanvas`.  The wrapper (and the 2D
context wrapper it returns) flips a one-way flag when one of four
operations is used, then delegates to the real object and returns
its result untouched:

- text drawing (``fill_text`` / ``stroke_text``) -> ``text``
- gradient creation -> ``gradient``
- pixel readback (``get_image_data``) -> ``image_data``
- data-URL export (``to_data_url``) -> ``readback``

Suspicion is one point per flag plus two for a hidden canvas, summed
over every canvas seen.  More than three points marks the page as
potentially fingerprinting.
"""

from __future__ import annotations

import collections
from collections.abc import Iterable
from typing import Any, Protocol

from xereta.models import canvas as canvas_models
from xereta.utils import logger

log = logger.create_logger("CanvasDetector")

FINGERPRINT_THRESHOLD = 3
HIDDEN_PENALTY = 2


class Context2D(Protocol):
    """The 2D drawing calls the detector watches."""

    def fill_text(self, *args: Any, **kwargs: Any) -> Any: ...

    def stroke_text(self, *args: Any, **kwargs: Any) -> Any: ...

    def create_linear_gradient(self, *args: Any, **kwargs: Any) -> Any: ...

    def create_radial_gradient(self, *args: Any, **kwargs: Any) -> Any: ...

    def get_image_data(self, *args: Any, **kwargs: Any) -> Any: ...


class CanvasElement(Protocol):
    """The slice of a canvas element the detector relies on."""

    id: str
    width: int
    height: int
    parent: Any

    def computed_style(self, prop: str) -> str: ...

    def get_context(self, kind: str, **attributes: Any) -> Any: ...

    def to_data_url(self, *args: Any) -> str: ...


def is_hidden(element: CanvasElement) -> bool:
    """Whether *element* is detached, ``visibility: hidden`` or ``display: none``."""
    if getattr(element, "parent", None) is None:
        return True
    return element.computed_style("visibility") == "hidden" or element.computed_style("display") == "none"


def is_canvas(node: object) -> bool:
    return str(getattr(node, "tag_name", "")).lower() == "canvas"


def summarize_canvases(records: Iterable[canvas_models.CanvasRecord]) -> canvas_models.CanvasFingerprint:
    """Aggregate suspicion over *records*."""
    details = list(records)
    score = sum(r.operations.count() + (HIDDEN_PENALTY if r.hidden else 0) for r in details)
    return canvas_models.CanvasFingerprint(
        details=details,
        suspicious_score=score,
        potential_fingerprinting=score > FINGERPRINT_THRESHOLD,
    )


class InstrumentedContext2D:
    """2D context wrapper that records text, gradient and pixel-readback use."""

    def __init__(self, context: Context2D, record: canvas_models.CanvasRecord) -> None:
        object.__setattr__(self, "_context", context)
        object.__setattr__(self, "_record", record)

    def fill_text(self, *args: Any, **kwargs: Any) -> Any:
        self._record.operations.text = True
        return self._context.fill_text(*args, **kwargs)

    def stroke_text(self, *args: Any, **kwargs: Any) -> Any:
        self._record.operations.text = True
        return self._context.stroke_text(*args, **kwargs)

    def create_linear_gradient(self, *args: Any, **kwargs: Any) -> Any:
        self._record.operations.gradient = True
        return self._context.create_linear_gradient(*args, **kwargs)

    def create_radial_gradient(self, *args: Any, **kwargs: Any) -> Any:
        self._record.operations.gradient = True
        return self._context.create_radial_gradient(*args, **kwargs)

    def get_image_data(self, *args: Any, **kwargs: Any) -> Any:
        self._record.operations.image_data = True
        return self._context.get_image_data(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._context, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._context, name, value)


class InstrumentedCanvas:
    """Canvas wrapper that records data-URL export and wraps 2D contexts."""

    def __init__(self, element: CanvasElement, record: canvas_models.CanvasRecord) -> None:
        object.__setattr__(self, "_element", element)
        object.__setattr__(self, "_record", record)

    @property
    def record(self) -> canvas_models.CanvasRecord:
        return self._record

    @property
    def wrapped(self) -> CanvasElement:
        return self._element

    def get_context(self, kind: str, **attributes: Any) -> Any:
        context = self._element.get_context(kind, **attributes)
        if kind != "2d" or context is None:
            return context
        if attributes.get("will_read_frequently") or attributes.get("willReadFrequently"):
            self._record.attributes.will_read_frequently = True
        return InstrumentedContext2D(context, self._record)

    def to_data_url(self, *args: Any, **kwargs: Any) -> str:
        self._record.operations.readback = True
        return self._element.to_data_url(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._element, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._element, name, value)


class CanvasFingerprintDetector:
    """Page-lifetime collection of instrumented canvases.

    Records are never removed, even when a canvas is later detached.
    """

    def __init__(self) -> None:
        self._records: list[canvas_models.CanvasRecord] = []
        self._wrappers: dict[int, InstrumentedCanvas] = {}

    @property
    def records(self) -> list[canvas_models.CanvasRecord]:
        return list(self._records)

    def observe(self, element: CanvasElement) -> InstrumentedCanvas:
        """Start tracking *element* and return its instrumented wrapper.

        Visibility and size are captured now.  Observing the same
        element again returns the existing wrapper.
        """
        existing = self._wrappers.get(id(element))
        if existing is not None:
            return existing

        record = canvas_models.CanvasRecord(
            id=getattr(element, "id", "") or f"canvas-{len(self._records)}",
            size=canvas_models.CanvasSize(
                width=int(getattr(element, "width", 0) or 0),
                height=int(getattr(element, "height", 0) or 0),
            ),
            hidden=is_hidden(element),
        )
        wrapper = InstrumentedCanvas(element, record)
        self._records.append(record)
        self._wrappers[id(element)] = wrapper
        log.debug("Canvas observed", {"id": record.id, "hidden": record.hidden})
        return wrapper

    def observe_all(self, elements: Iterable[CanvasElement]) -> list[InstrumentedCanvas]:
        return [self.observe(e) for e in elements]

    def on_nodes_added(self, nodes: Iterable[object]) -> list[InstrumentedCanvas]:
        """Handle a DOM-mutation batch: observe every canvas in the added subtrees."""
        found: list[InstrumentedCanvas] = []
        queue = collections.deque(nodes)
        while queue:
            node = queue.popleft()
            if is_canvas(node):
                found.append(self.observe(node))  # type: ignore[arg-type]
            queue.extend(getattr(node, "children", ()) or ())
        return found

    def snapshot(self) -> canvas_models.CanvasFingerprint:
        """Copy of all records with the aggregate suspicion score."""
        return summarize_canvases(r.model_copy(deep=True) for r in self._records)
