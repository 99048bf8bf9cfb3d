"""
Graph mutations for the diagram editor.

Every function here is pure: it takes node/edge tuples and returns new
tuples, leaving the timeline to the caller. Untouched Node/Edge objects are
reused as-is, which is safe because they are frozen.

Structural guarantees:
- node ids are unique (new ids never collide with an existing one)
- deleting a node also deletes every edge touching it
- at most one node is in label-editing mode
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from src.models import Change, Edge, Node, Position

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "New Node"

Nodes = Tuple[Node, ...]
Edges = Tuple[Edge, ...]


class InvalidReference(Exception):
    """Raised when an edge endpoint does not name an existing node."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Unknown node id(s): {', '.join(missing)}")


# --- Id generation ---

def next_node_id(nodes: Sequence[Node]) -> str:
    """
    Return a fresh node id: one past the largest numeric id present.

    Non-numeric ids (e.g. from an import) are skipped when computing the
    maximum but are still checked for collisions.
    """
    existing = {n.id for n in nodes}
    numeric = [int(nid) for nid in existing if nid.isdigit()]
    candidate = max(numeric, default=0) + 1
    while str(candidate) in existing:
        candidate += 1
    return str(candidate)


def next_edge_id(edges: Sequence[Edge], source: str, target: str) -> str:
    """Edge ids are 'e{source}-{target}' with a counter suffix for parallels."""
    existing = {e.id for e in edges}
    base = f"e{source}-{target}"
    if base not in existing:
        return base
    n = 2
    while f"{base}-{n}" in existing:
        n += 1
    return f"{base}-{n}"


# --- Node operations ---

def add_node(nodes: Nodes, position: Position, label: str = DEFAULT_LABEL) -> Tuple[Nodes, Node]:
    """Append a new node in editing mode; every other node stops editing."""
    new_node = Node(id=next_node_id(nodes), position=Position.from_dict(position), label=label, is_editing=True)
    others = tuple(n.evolve(is_editing=False) if n.is_editing else n for n in nodes)
    logger.debug(f"Added node {new_node.id} at ({new_node.position.x}, {new_node.position.y})")
    return others + (new_node,), new_node


def _update_node(nodes: Nodes, node_id: str, **changes) -> Nodes:
    return tuple(n.evolve(**changes) if n.id == node_id else n for n in nodes)


def update_label(nodes: Nodes, node_id: str, label: str) -> Nodes:
    return _update_node(nodes, node_id, label=label)


def set_editing(nodes: Nodes, node_id: str, editing: bool) -> Nodes:
    """
    Set the editing flag on one node.

    Turning editing on clears it on every other node. Unknown ids leave the
    collection unchanged.
    """
    if not any(n.id == node_id for n in nodes):
        return nodes
    if not editing:
        return _update_node(nodes, node_id, is_editing=False)
    return tuple(
        n.evolve(is_editing=(n.id == node_id)) if n.is_editing != (n.id == node_id) else n
        for n in nodes
    )


def set_color(nodes: Nodes, node_id: str, background_color: Optional[str]) -> Nodes:
    # text colour is a derived property of Node, so only the background is stored
    return _update_node(nodes, node_id, background_color=background_color)


def free_position(nodes: Iterable[Node], position: Position, step: float = 30.0, attempts: int = 50) -> Position:
    """Shift a position diagonally by step until no node sits exactly on it."""
    taken = {(n.position.x, n.position.y) for n in nodes}
    pos = Position.from_dict(position)
    for _ in range(attempts):
        if (pos.x, pos.y) not in taken:
            break
        pos = Position(pos.x + step, pos.y + step)
    return pos


def find_node(nodes: Iterable[Node], node_id: str) -> Optional[Node]:
    for n in nodes:
        if n.id == node_id:
            return n
    return None


def selected_ids(nodes: Iterable[Node]) -> List[str]:
    return [n.id for n in nodes if n.selected]


# --- Edge operations ---

def connect(nodes: Nodes, edges: Edges, source: str, target: str, **attrs) -> Tuple[Edges, Edge]:
    """
    Append an edge between two existing nodes.

    Parallel edges between the same pair are kept; each gets its own id.
    Raises InvalidReference if either endpoint is missing.
    """
    ids = {n.id for n in nodes}
    missing = [nid for nid in (source, target) if nid not in ids]
    if missing:
        raise InvalidReference(missing)
    edge = Edge(id=next_edge_id(edges, source, target), source=source, target=target, **attrs)
    return edges + (edge,), edge


def delete_nodes(nodes: Nodes, edges: Edges, ids: Iterable[str]) -> Tuple[Nodes, Edges]:
    """Remove the given nodes and every edge that references one of them."""
    doomed = set(ids)
    kept_nodes = tuple(n for n in nodes if n.id not in doomed)
    kept_edges = tuple(e for e in edges if e.source not in doomed and e.target not in doomed)
    dropped = len(edges) - len(kept_edges)
    if dropped:
        logger.debug(f"Cascading delete removed {dropped} edge(s)")
    return kept_nodes, kept_edges


def delete_edges(edges: Edges, ids: Iterable[str]) -> Edges:
    doomed = set(ids)
    return tuple(e for e in edges if e.id not in doomed)


# --- Batched canvas changes ---

def apply_node_changes(nodes: Nodes, changes: Sequence[Change]) -> Nodes:
    """
    Apply canvas deltas to the node collection.

    Order of untouched nodes is preserved; adds go to the end; an add whose id
    is already present is dropped to keep ids unique. A node added or
    replaced in editing mode takes the editing flag from every other node.
    """
    by_id = {n.id: n for n in nodes}
    order = [n.id for n in nodes]
    editing_id = None
    for change in changes:
        if change.type == "add":
            item = change.item
            if item is None or item.id in by_id:
                logger.warning(f"Ignoring add for duplicate or empty node {getattr(item, 'id', None)}")
                continue
            by_id[item.id] = item
            order.append(item.id)
            if item.is_editing:
                editing_id = item.id
            continue
        current = by_id.get(change.id)
        if current is None:
            continue
        if change.type == "remove":
            del by_id[change.id]
            order.remove(change.id)
        elif change.type == "position":
            if change.position is not None:
                by_id[change.id] = current.evolve(position=change.position)
        elif change.type == "select":
            by_id[change.id] = current.evolve(selected=bool(change.selected))
        elif change.type == "dimensions":
            by_id[change.id] = current.evolve(width=change.width, height=change.height)
        elif change.type == "replace" and change.item is not None:
            by_id[change.id] = change.item.evolve(id=change.id)
            if change.item.is_editing:
                editing_id = change.id
        else:
            logger.debug(f"Unhandled node change type: {change.type}")
    if editing_id in by_id and by_id[editing_id].is_editing:
        for nid in order:
            if nid != editing_id and by_id[nid].is_editing:
                by_id[nid] = by_id[nid].evolve(is_editing=False)
    return tuple(by_id[nid] for nid in order)


def apply_edge_changes(edges: Edges, changes: Sequence[Change]) -> Edges:
    by_id = {e.id: e for e in edges}
    order = [e.id for e in edges]
    for change in changes:
        if change.type == "add":
            item = change.item
            if item is None or item.id in by_id:
                continue
            by_id[item.id] = item
            order.append(item.id)
            continue
        current = by_id.get(change.id)
        if current is None:
            continue
        if change.type == "remove":
            del by_id[change.id]
            order.remove(change.id)
        elif change.type == "select":
            by_id[change.id] = current.evolve(selected=bool(change.selected))
        elif change.type == "replace" and change.item is not None:
            by_id[change.id] = change.item.evolve(id=change.id)
    return tuple(by_id[eid] for eid in order)


def apply_batch(
    nodes: Nodes,
    edges: Edges,
    node_changes: Sequence[Change] = (),
    edge_changes: Sequence[Change] = (),
) -> Tuple[Nodes, Edges]:
    """
    Apply node and edge deltas together.

    Edges left dangling by node removals, or added against unknown nodes, are
    dropped so every edge still points at a live node.
    """
    new_nodes = apply_node_changes(nodes, node_changes) if node_changes else nodes
    new_edges = apply_edge_changes(edges, edge_changes) if edge_changes else edges
    if new_nodes is not nodes or new_edges is not edges:
        ids = {n.id for n in new_nodes}
        valid = tuple(e for e in new_edges if e.source in ids and e.target in ids)
        if len(valid) != len(new_edges):
            new_edges = valid
    return new_nodes, new_edges
