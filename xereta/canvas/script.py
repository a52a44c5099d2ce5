"""
In-page canvas instrumentation for real browsers.

``CANVAS_INIT_SCRIPT`` is added as a Playwright init script so it runs
before any page code.  It applies the same four operation flags and
visibility rule as :mod:`xereta.canvas.detector`, registering a canvas
when it is inserted into the DOM or first used.  The page keeps only
raw records; scoring happens in Python through
:func:`xereta.canvas.detector.summarize_canvases`.
"""

from __future__ import annotations

from typing import Any

import pydantic

from xereta.canvas import detector
from xereta.models import canvas as canvas_models
from xereta.utils import logger

log = logger.create_logger("CanvasScript")

SNAPSHOT_EXPRESSION = "() => (window.__xeretaCanvas ? window.__xeretaCanvas.snapshot() : [])"

CANVAS_INIT_SCRIPT = """
(() => {
    if (window.__xeretaCanvas) return;
    const records = [];
    const byElement = new WeakMap();

    const isHidden = (el) => {
        if (!el.parentElement) return true;
        const style = window.getComputedStyle(el);
        return style.visibility === 'hidden' || style.display === 'none';
    };

    const observe = (el) => {
        let record = byElement.get(el);
        if (record) return record;
        record = {
            id: el.id || ('canvas-' + records.length),
            size: { width: el.width, height: el.height },
            operations: { text: false, gradient: false, imageData: false, readback: false },
            hidden: isHidden(el),
            attributes: { willReadFrequently: false },
        };
        byElement.set(el, record);
        records.push(record);
        return record;
    };

    const wrap = (proto, method, getCanvas, name) => {
        const original = proto[method];
        if (!original) return;
        proto[method] = function (...args) {
            const canvas = getCanvas(this);
            if (canvas) observe(canvas).operations[name] = true;
            return original.apply(this, args);
        };
    };

    const ctxCanvas = (ctx) => ctx.canvas;
    const C2D = window.CanvasRenderingContext2D && CanvasRenderingContext2D.prototype;
    if (C2D) {
        wrap(C2D, 'fillText', ctxCanvas, 'text');
        wrap(C2D, 'strokeText', ctxCanvas, 'text');
        wrap(C2D, 'createLinearGradient', ctxCanvas, 'gradient');
        wrap(C2D, 'createRadialGradient', ctxCanvas, 'gradient');
        wrap(C2D, 'getImageData', ctxCanvas, 'imageData');
    }

    const CanvasProto = HTMLCanvasElement.prototype;
    wrap(CanvasProto, 'toDataURL', (el) => el, 'readback');

    const originalGetContext = CanvasProto.getContext;
    CanvasProto.getContext = function (kind, attrs) {
        const record = observe(this);
        if (kind === '2d' && attrs && attrs.willReadFrequently) {
            record.attributes.willReadFrequently = true;
        }
        return originalGetContext.apply(this, arguments);
    };

    const scan = (node) => {
        if (!node || node.nodeType !== 1) return;
        if (node.tagName === 'CANVAS') observe(node);
        if (node.querySelectorAll) node.querySelectorAll('canvas').forEach(observe);
    };

    new MutationObserver((mutations) => {
        for (const m of mutations) m.addedNodes.forEach(scan);
    }).observe(document, { childList: true, subtree: true });

    document.addEventListener('DOMContentLoaded', () => {
        document.querySelectorAll('canvas').forEach(observe);
    });

    window.__xeretaCanvas = {
        snapshot: () => JSON.parse(JSON.stringify(records)),
    };
})();
"""


def records_from_page(raw: Any) -> list[canvas_models.CanvasRecord]:
    """Validate the raw page snapshot, skipping entries that do not fit the record shape."""
    if not isinstance(raw, list):
        return []
    records: list[canvas_models.CanvasRecord] = []
    for item in raw:
        try:
            records.append(canvas_models.CanvasRecord.model_validate(item))
        except pydantic.ValidationError as exc:
            log.debug("Skipping malformed canvas record", {"error": str(exc)})
    return records


def fingerprint_from_page(raw: Any) -> canvas_models.CanvasFingerprint:
    return detector.summarize_canvases(records_from_page(raw))
