"""
Data model for the diagram editor.

Nodes, edges and snapshots are frozen dataclasses held in tuples. A snapshot
can therefore share unchanged nodes with its neighbours in the timeline
without any entry ever seeing another entry's edits.

Wire format (the shape the canvas emits and the JSON export uses):

    Node: {"id", "type": "editable", "position": {"x", "y"},
           "data": {"label", "isEditing"},
           "style": {"backgroundColor", "textColor"},
           "selected", "width", "height"}
    Edge: {"id", "source", "target", "sourceHandle", "targetHandle",
           "label", "animated", "selected"}

Optional keys are omitted when unset.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from src.contrast import get_contrast_color

NODE_KIND = "editable"


class EditKind(str, Enum):
    """How a mutation is recorded in the timeline."""
    CONTINUOUS = "continuous"
    DISCRETE = "discrete"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, raw: Any) -> "Position":
        if isinstance(raw, Position):
            return raw
        if isinstance(raw, (list, tuple)) and len(raw) >= 2:
            return cls(float(raw[0]), float(raw[1]))
        raw = raw or {}
        return cls(float(raw.get("x", 0.0)), float(raw.get("y", 0.0)))


@dataclass(frozen=True)
class Node:
    id: str
    position: Position = field(default_factory=Position)
    label: str = ""
    is_editing: bool = False
    background_color: Optional[str] = None
    selected: bool = False
    width: Optional[float] = None
    height: Optional[float] = None
    kind: str = NODE_KIND

    @property
    def text_color(self) -> Optional[str]:
        """Foreground colour, always derived from the current background."""
        if self.background_color is None:
            return None
        return get_contrast_color(self.background_color)

    def evolve(self, **changes) -> "Node":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind,
            "position": self.position.to_dict(),
            "data": {"label": self.label, "isEditing": self.is_editing},
        }
        if self.background_color is not None:
            out["style"] = {
                "backgroundColor": self.background_color,
                "textColor": self.text_color,
            }
        if self.selected:
            out["selected"] = True
        if self.width is not None:
            out["width"] = self.width
        if self.height is not None:
            out["height"] = self.height
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Node":
        data = raw.get("data") or {}
        style = raw.get("style") or {}
        # textColor is ignored on purpose; it is recomputed from the background
        return cls(
            id=str(raw["id"]),
            position=Position.from_dict(raw.get("position")),
            label=str(data.get("label", "")),
            is_editing=bool(data.get("isEditing", False)),
            background_color=style.get("backgroundColor"),
            selected=bool(raw.get("selected", False)),
            width=raw.get("width"),
            height=raw.get("height"),
            kind=raw.get("type") or NODE_KIND,
        )


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    label: Optional[str] = None
    animated: bool = False
    selected: bool = False

    def evolve(self, **changes) -> "Edge":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "source": self.source, "target": self.target}
        if self.source_handle is not None:
            out["sourceHandle"] = self.source_handle
        if self.target_handle is not None:
            out["targetHandle"] = self.target_handle
        if self.label is not None:
            out["label"] = self.label
        if self.animated:
            out["animated"] = True
        if self.selected:
            out["selected"] = True
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Edge":
        return cls(
            id=str(raw["id"]),
            source=str(raw["source"]),
            target=str(raw["target"]),
            source_handle=raw.get("sourceHandle"),
            target_handle=raw.get("targetHandle"),
            label=raw.get("label"),
            animated=bool(raw.get("animated", False)),
            selected=bool(raw.get("selected", False)),
        )


@dataclass(frozen=True)
class Snapshot:
    """One immutable point in the editing history."""
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Snapshot":
        return cls(
            nodes=tuple(Node.from_dict(n) for n in raw.get("nodes") or []),
            edges=tuple(Edge.from_dict(e) for e in raw.get("edges") or []),
        )


@dataclass(frozen=True)
class Change:
    """
    A single delta emitted by the canvas.

    type is one of 'position', 'select', 'dimensions', 'remove', 'add' or
    'replace'. `item` carries the node/edge for 'add' and 'replace'.
    `dragging` is None when the canvas did not say (keyboard moves).
    """
    type: str
    id: Optional[str] = None
    position: Optional[Position] = None
    dragging: Optional[bool] = None
    selected: Optional[bool] = None
    width: Optional[float] = None
    height: Optional[float] = None
    item: Any = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], item_type=None) -> "Change":
        if isinstance(raw, Change):
            return raw
        position = raw.get("position")
        dimensions = raw.get("dimensions") or {}
        item = raw.get("item")
        if item is not None and item_type is not None and isinstance(item, dict):
            item = item_type.from_dict(item)
        return cls(
            type=raw["type"],
            id=raw.get("id", getattr(item, "id", None)),
            position=Position.from_dict(position) if position is not None else None,
            dragging=raw.get("dragging"),
            selected=raw.get("selected"),
            width=dimensions.get("width"),
            height=dimensions.get("height"),
            item=item,
        )
