from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LAYOUT_MODES = ("HORIZONTAL", "VERTICAL")
LAYOUT_MODE_NONE = "NONE"

# Primitive / decorative shapes never carry a meaningful name.
SKIP_NODE_TYPES = frozenset(
    {
        "VECTOR",
        "LINE",
        "ELLIPSE",
        "POLYGON",
        "STAR",
        "BOOLEAN_OPERATION",
        "SLICE",
        "STAMP",
    }
)
COMPONENT_BOUNDARY_TYPES = frozenset({"INSTANCE", "COMPONENT", "COMPONENT_SET"})
CONTAINER_TYPES = frozenset({"FRAME", "GROUP"})
SECTION_TYPE = "SECTION"
TEXT_TYPE = "TEXT"

DEFAULT_INCLUDE_NODE_TYPES = (
    "FRAME",
    "GROUP",
    "COMPONENT",
    "COMPONENT_SET",
    "INSTANCE",
    "TEXT",
    "SECTION",
)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class BoundingBox:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def offset(self, dx: float, dy: float) -> BoundingBox:
        return replace(self, x=self.x + dx, y=self.y + dy)

    def scaled(self, factor: float) -> BoundingBox:
        return BoundingBox(
            x=self.x * factor,
            y=self.y * factor,
            width=self.width * factor,
            height=self.height * factor,
        )

    def relative_to(self, origin: BoundingBox, scale: float = 1.0) -> BoundingBox:
        return self.offset(-origin.x, -origin.y).scaled(scale)

    def intersection_area(self, other: BoundingBox) -> float:
        width = min(self.right, other.right) - max(self.x, other.x)
        height = min(self.bottom, other.bottom) - max(self.y, other.y)
        return max(0.0, width) * max(0.0, height)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


ZERO_BOX = BoundingBox()


class ComponentProperty(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = ""
    value: Any = None


class SceneNode(BaseModel):
    """A design-canvas node as exported by the design tool.

    Accepts the camelCase keys of the export format as well as the
    snake_case field names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    type: str = Field(..., min_length=1)
    visible: bool = True
    locked: bool = False
    absolute_bounding_box: Optional[BoundingBox] = Field(
        default=None, alias="absoluteBoundingBox"
    )
    characters: Optional[str] = None
    layout_mode: Optional[str] = Field(default=None, alias="layoutMode")
    bound_variables: Dict[str, Any] = Field(default_factory=dict, alias="boundVariables")
    component_properties: Dict[str, ComponentProperty] = Field(
        default_factory=dict, alias="componentProperties"
    )
    children: List[SceneNode] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> str:
        return str(value or "").strip().upper()

    @field_validator("bound_variables", "component_properties", mode="before")
    @classmethod
    def none_as_empty(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("children", mode="before")
    @classmethod
    def none_as_no_children(cls, value: object) -> object:
        return [] if value is None else value


@dataclass(frozen=True)
class NodeMetadata:
    id: str
    original_name: str
    node_type: str
    bounding_box: BoundingBox
    depth: int
    parent_id: str | None
    text_content: str | None
    bound_variables: List[str] = field(default_factory=list)
    component_properties: Dict[str, str] = field(default_factory=dict)
    has_children: bool = False
    child_count: int = 0
    layout_mode: str = LAYOUT_MODE_NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "original_name": self.original_name,
            "node_type": self.node_type,
            "bounding_box": self.bounding_box.to_dict(),
            "depth": self.depth,
            "parent_id": self.parent_id,
            "text_content": self.text_content,
            "bound_variables": list(self.bound_variables),
            "component_properties": dict(self.component_properties),
            "has_children": self.has_children,
            "child_count": self.child_count,
            "layout_mode": self.layout_mode,
        }


@dataclass(frozen=True)
class SomLabel:
    mark_id: int
    node_id: str
    original_name: str
    highlight_box: BoundingBox


@dataclass(frozen=True)
class LabelPlacement:
    mark_id: int
    x: float
    y: float
    width: float
    height: float
    anchor_x: float
    anchor_y: float

    def moved_to(self, x: float, y: float) -> LabelPlacement:
        return replace(self, x=x, y=y)

    @property
    def box(self) -> BoundingBox:
        return BoundingBox(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class AnnotationStyle:
    highlight_color: str = "#FF0040"
    highlight_opacity: float = 0.3
    highlight_stroke_width: float = 2.0
    label_background_color: str | None = None  # falls back to highlight_color
    label_text_color: str = "#FFFFFF"
    label_padding: float = 4.0
    label_font_size: float = 14.0
    label_font_family: str = "Arial, sans-serif"
    label_border_radius: float = 3.0

    @property
    def badge_color(self) -> str:
        return self.label_background_color or self.highlight_color

    def badge_height(self, font_size: float | None = None) -> float:
        size = self.label_font_size if font_size is None else font_size
        return size + self.label_padding * 2


@dataclass(frozen=True)
class AnnotatedImage:
    data: bytes
    width: int
    height: int
    media_type: str = "image/png"
    placements: List[LabelPlacement] = field(default_factory=list)
