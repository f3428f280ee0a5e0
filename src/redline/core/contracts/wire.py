"""Shared base model for every record that crosses a process boundary.

The review UI and the share links speak camelCase JSON (``originalText``,
``startOffset``), while Python code reads snake_case attributes. All contract
models inherit :class:`WireModel` so the mapping is declared once.

Instances are frozen: a "changed" record is always a new instance.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Frozen pydantic model with camelCase aliases on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, object]:
        """Dump to a JSON-safe dict using wire (camelCase) names, dropping ``None``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["WireModel"]
