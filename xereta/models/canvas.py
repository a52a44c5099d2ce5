"""Models for canvas instrumentation records and the fingerprint summary."""

from __future__ import annotations

import pydantic

from xereta.models.base import WireModel


class CanvasSize(WireModel):
    width: int = 0
    height: int = 0


class CanvasOperations(WireModel):
    """One-way flags: once an operation is seen it stays true."""

    text: bool = False
    gradient: bool = False
    image_data: bool = False
    readback: bool = False

    def count(self) -> int:
        return sum((self.text, self.gradient, self.image_data, self.readback))


class CanvasAttributes(WireModel):
    will_read_frequently: bool = False


class CanvasRecord(WireModel):
    id: str
    size: CanvasSize = pydantic.Field(default_factory=CanvasSize)
    operations: CanvasOperations = pydantic.Field(default_factory=CanvasOperations)
    hidden: bool = False
    attributes: CanvasAttributes = pydantic.Field(default_factory=CanvasAttributes)


class CanvasFingerprint(WireModel):
    details: list[CanvasRecord] = pydantic.Field(default_factory=list)
    suspicious_score: int = 0
    potential_fingerprinting: bool = False
