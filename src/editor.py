"""
Diagram editor engine.

DiagramEditor is the operations surface the presentation layer calls:
add/delete/label/colour/connect, raw canvas change batches, undo/redo and
import/export. Each call computes the new graph with graph_store, records it
in the HistoryManager (new entry or in-place patch) and persists the
timeline.

Label edits and editing-flag toggles patch the active entry so typing does
not create one undo step per keystroke; commit_label() is the discrete
counterpart for when the user confirms a label.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from src import graph_store
from src.classifier import ChangeClassifier
from src.codec import (
    EXPORT_FILENAME,
    DocumentImportError,
    dump_document,
    export_snapshot,
    import_document,
    integrity_report,
)
from src.history import HistoryManager
from src.models import Change, Edge, EditKind, Node, Position, Snapshot
from src.storage.persistence import TimelinePersistence

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of an import; the timeline is only replaced when ok is True."""
    ok: bool
    snapshot: Optional[Snapshot] = None
    error: Optional[str] = None
    warnings: Dict[str, List[str]] = field(default_factory=dict)


def _read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class DiagramEditor:
    """
    History-backed graph editor.

    Args:
        persistence: where the timeline is loaded from and saved to
        history_limit: optional cap on undo entries
    """

    def __init__(self, persistence: TimelinePersistence, history_limit: Optional[int] = None):
        self._persistence = persistence
        timeline = persistence.load()
        self.history = HistoryManager(timeline.entries, timeline.cursor, limit=history_limit)
        self.classifier = ChangeClassifier()
        self._import_task: Optional[asyncio.Future] = None

    # --- Read access ---

    @property
    def snapshot(self) -> Snapshot:
        return self.history.active

    @property
    def nodes(self) -> tuple:
        return self.history.active.nodes

    @property
    def edges(self) -> tuple:
        return self.history.active.edges

    @property
    def selected_node(self) -> Optional[Node]:
        for n in self.nodes:
            if n.selected:
                return n
        return None

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def get_node(self, node_id: str) -> Optional[Node]:
        return graph_store.find_node(self.nodes, node_id)

    # --- Recording ---

    def _save(self) -> None:
        self._persistence.save(self.history.entries, self.history.cursor)

    def _record(self, kind: EditKind, nodes: Sequence[Node], edges: Sequence[Edge]) -> Snapshot:
        if kind is EditKind.DISCRETE:
            snapshot = self.history.commit_discrete(nodes, edges)
        else:
            snapshot = self.history.mutate_continuous(nodes, edges)
        self._save()
        return snapshot

    # --- Node operations ---

    def add_node(self, position: Union[Position, Dict[str, float], tuple] = (0.0, 0.0),
                 label: str = graph_store.DEFAULT_LABEL) -> Node:
        """Add a node at a canvas position (e.g. the viewport centre)."""
        nodes, node = graph_store.add_node(self.nodes, Position.from_dict(position), label)
        self._record(EditKind.DISCRETE, nodes, self.edges)
        logger.info(f"Added node {node.id}")
        return node

    def update_label(self, node_id: str, label: str) -> None:
        """Live label edit; patches the active entry."""
        nodes = graph_store.update_label(self.nodes, node_id, label)
        self._record(EditKind.CONTINUOUS, nodes, self.edges)

    def commit_label(self, node_id: str, label: str) -> None:
        """Confirm a label as its own undo step and leave editing mode."""
        if self.get_node(node_id) is None:
            return
        nodes = graph_store.update_label(self.nodes, node_id, label)
        nodes = graph_store.set_editing(nodes, node_id, False)
        self._record(EditKind.DISCRETE, nodes, self.edges)

    def set_editing(self, node_id: str, editing: bool = True) -> None:
        nodes = graph_store.set_editing(self.nodes, node_id, editing)
        self._record(EditKind.CONTINUOUS, nodes, self.edges)

    def set_color(self, node_id: str, background_color: Optional[str]) -> None:
        node = self.get_node(node_id)
        if node is None or node.background_color == background_color:
            return
        nodes = graph_store.set_color(self.nodes, node_id, background_color)
        self._record(EditKind.DISCRETE, nodes, self.edges)

    def preview_color(self, node_id: str, background_color: Optional[str]) -> Snapshot:
        """The active snapshot with a colour applied, without recording it."""
        return Snapshot(graph_store.set_color(self.nodes, node_id, background_color), self.edges)

    def connect(self, source: str, target: str, **attrs) -> Edge:
        """
        Connect two nodes.

        Raises:
            InvalidReference: an endpoint is not a node; nothing is recorded
        """
        edges, edge = graph_store.connect(self.nodes, self.edges, source, target, **attrs)
        self._record(EditKind.DISCRETE, self.nodes, edges)
        logger.info(f"Connected {source} -> {target} as {edge.id}")
        return edge

    def delete_nodes(self, ids: Iterable[str]) -> None:
        ids = set(ids)
        if not any(n.id in ids for n in self.nodes):
            return
        before = len(self.nodes)
        nodes, edges = graph_store.delete_nodes(self.nodes, self.edges, ids)
        self._record(EditKind.DISCRETE, nodes, edges)
        logger.info(f"Deleted {before - len(nodes)} node(s)")

    def delete_selected(self) -> None:
        """Delete selected nodes (with their edges) and selected edges in one step."""
        node_ids = graph_store.selected_ids(self.nodes)
        edge_ids = [e.id for e in self.edges if e.selected]
        if not node_ids and not edge_ids:
            return
        nodes, edges = graph_store.delete_nodes(self.nodes, self.edges, node_ids)
        edges = graph_store.delete_edges(edges, edge_ids)
        self._record(EditKind.DISCRETE, nodes, edges)

    # --- Canvas change batches ---

    def apply_changes(self, node_changes: Sequence[Any] = (), edge_changes: Sequence[Any] = ()) -> EditKind:
        """
        Apply a batch of canvas deltas (dicts or Change objects).

        Returns the EditKind the batch was recorded as.
        """
        node_changes = [Change.from_dict(c, Node) for c in node_changes]
        edge_changes = [Change.from_dict(c, Edge) for c in edge_changes]
        kind = self.classifier.classify(node_changes, edge_changes)
        nodes, edges = graph_store.apply_batch(self.nodes, self.edges, node_changes, edge_changes)
        if nodes is self.nodes and edges is self.edges:
            return kind
        self._record(kind, nodes, edges)
        return kind

    # --- History ---

    def undo(self) -> bool:
        self.classifier.reset()
        moved = self.history.undo()
        if moved:
            self._save()
        return moved

    def redo(self) -> bool:
        self.classifier.reset()
        moved = self.history.redo()
        if moved:
            self._save()
        return moved

    # --- Export ---

    def export_document(self) -> Dict[str, Any]:
        return export_snapshot(self.snapshot)

    def export_text(self) -> str:
        return dump_document(self.snapshot)

    def export_to(self, directory: Union[str, Path]) -> Path:
        """Write the active snapshot to <directory>/diagram.json."""
        path = Path(directory) / EXPORT_FILENAME
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.export_text())
        logger.info(f"Exported diagram to {path}")
        return path

    # --- Import ---

    def import_text(self, raw_text: str) -> ImportResult:
        """Parse a document and, if valid, make it the whole timeline."""
        try:
            snapshot = import_document(raw_text)
        except DocumentImportError as e:
            logger.warning(f"Import rejected: {e}")
            return ImportResult(ok=False, error=str(e))

        report = integrity_report(snapshot)
        warnings = {k: v for k, v in report.items() if v}
        if warnings:
            logger.warning(f"Imported diagram has integrity problems: {warnings}")

        self.history.replace_all(snapshot.nodes, snapshot.edges)
        self.classifier.reset()
        self._save()
        return ImportResult(ok=True, snapshot=snapshot, warnings=warnings)

    async def import_file(self, path: Union[str, Path]) -> ImportResult:
        """
        Read a file off the event loop, then import it.

        A newer import cancels a pending one; the cancelled call returns a
        failed result and leaves the timeline alone.
        """
        if self._import_task is not None and not self._import_task.done():
            logger.info("Pending import superseded")
            self._import_task.cancel()

        task = asyncio.ensure_future(asyncio.to_thread(_read_text, Path(path)))
        self._import_task = task
        try:
            raw = await task
        except asyncio.CancelledError:
            if task.cancelled() and self._import_task is not task:
                return ImportResult(ok=False, error="Import superseded by a newer import")
            raise
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read import file {path}: {e}")
            return ImportResult(ok=False, error=f"Could not read {path}: {e}")
        finally:
            if self._import_task is task:
                self._import_task = None

        return self.import_text(raw)
