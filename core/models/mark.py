# =============================================================================
# core/models/mark.py - Image Mark Schemas
# =============================================================================
# Marks are shapes drawn on top of an image (circle, rectangle or point),
# optionally with a short comment.
#
# Two shapes of the same data exist:
#   - API shape (what clients send and receive): type, x, y, ...
#   - Row shape (image_marks table): mark_type, x_coordinate, y_coordinate, ...
# The conversions live here so services never juggle both by hand.
# Coordinates and sizes are stored as whole pixels.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class MarkType(str, Enum):
    CIRCLE = "circle"
    RECTANGLE = "rectangle"
    POINT = "point"


class MarkerColor(str, Enum):
    GREEN = "green"
    RED = "red"
    YELLOW = "yellow"
    BLUE = "blue"
    PURPLE = "purple"
    NONE = "none"


def _round(value: float | None) -> int | None:
    return None if value is None else int(round(value))


# Field name in the API shape -> column in image_marks
_ROW_COLUMNS = {
    "type": "mark_type",
    "x": "x_coordinate",
    "y": "y_coordinate",
    "width": "width",
    "height": "height",
    "radius": "radius",
    "color": "color",
    "comment": "comment",
}

_ROUNDED = {"x", "y", "width", "height", "radius"}


class MarkCreate(BaseModel):
    """
    A new mark as sent by the client.

    Example:
        {"type": "circle", "x": 120.4, "y": 88.9, "radius": 24, "color": "red",
         "comment": "Dust spot"}
    """
    type: MarkType
    x: float
    y: float
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)
    radius: float | None = Field(default=None, ge=0)
    color: MarkerColor = MarkerColor.BLUE
    comment: str | None = Field(default=None, max_length=2000)

    def to_row(
        self,
        image_id: str,
        project_id: str,
        author_id: str,
        author_name: str,
    ) -> dict[str, Any]:
        """Build the image_marks insert payload."""
        return {
            "image_id": image_id,
            "project_id": project_id,
            "author_id": author_id,
            "author_name": author_name,
            "mark_type": self.type.value,
            "x_coordinate": _round(self.x),
            "y_coordinate": _round(self.y),
            "width": _round(self.width),
            "height": _round(self.height),
            "radius": _round(self.radius),
            "color": self.color.value,
            "comment": self.comment or None,
        }


class MarkUpdate(BaseModel):
    """Partial update; only fields that are set are written."""
    type: MarkType | None = None
    x: float | None = None
    y: float | None = None
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)
    radius: float | None = Field(default=None, ge=0)
    color: MarkerColor | None = None
    comment: str | None = Field(default=None, max_length=2000)

    def to_row_updates(self) -> dict[str, Any]:
        updates = {}
        for field_name, value in self.model_dump(exclude_unset=True).items():
            if field_name in _ROUNDED:
                value = _round(value)
            elif isinstance(value, Enum):
                value = value.value
            updates[_ROW_COLUMNS[field_name]] = value
        return updates


class Mark(BaseModel):
    """A stored mark in API shape."""
    id: UUID
    type: MarkType
    x: int
    y: int
    width: int | None = None
    height: int | None = None
    radius: int | None = None
    color: MarkerColor = MarkerColor.NONE
    comment: str = ""
    author: str | None = None
    author_id: UUID | None = None
    timestamp: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Mark":
        return cls(
            id=row["id"],
            type=row["mark_type"],
            x=row["x_coordinate"],
            y=row["y_coordinate"],
            width=row.get("width"),
            height=row.get("height"),
            radius=row.get("radius"),
            color=row.get("color") or MarkerColor.NONE,
            comment=row.get("comment") or "",
            author=row.get("author_name"),
            author_id=row.get("author_id"),
            timestamp=row.get("created_at"),
        )
