"""Shared model base with camelCase wire aliases."""

from __future__ import annotations

import pydantic


def snake_to_camel(name: str) -> str:
    """Convert ``first_seen`` to ``firstSeen``."""
    head, *rest = name.split("_")
    return head + "".join(w.capitalize() for w in rest)


class WireModel(pydantic.BaseModel):
    """Base for every payload that crosses a context boundary.

    Dumps with camelCase keys when ``by_alias=True`` and accepts
    either spelling on input.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump to a JSON-ready camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)
