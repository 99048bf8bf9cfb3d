"""
JSON import/export for diagrams.

Export writes the active snapshot only (no history) as {nodes, edges}.
Import parses a user-supplied document into a Snapshot. Imports are not
rejected for dangling edges or duplicate ids; integrity_report() lists such
problems so the caller can warn about them.
"""

import json
import logging
from collections import Counter
from typing import Any, Dict, List

import networkx as nx

from src.models import Edge, Node, Snapshot

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "diagram.json"


class DocumentImportError(Exception):
    """Base class for rejected import documents."""


class ParseError(DocumentImportError):
    """The document is not well-formed JSON."""


class SchemaError(DocumentImportError):
    """The document parsed but does not have the expected shape."""


def export_snapshot(snapshot: Snapshot) -> Dict[str, Any]:
    return snapshot.to_dict()


def dump_document(snapshot: Snapshot) -> str:
    """Pretty-printed export text."""
    return json.dumps(export_snapshot(snapshot), indent=2, ensure_ascii=False)


def _records(doc: Dict[str, Any], field: str) -> List[Dict[str, Any]]:
    value = doc.get(field, [])
    if value is None:
        return []
    if not isinstance(value, list):
        raise SchemaError(f"'{field}' must be a list")
    if not all(isinstance(item, dict) for item in value):
        raise SchemaError(f"every entry in '{field}' must be an object")
    return value


def import_document(raw_text: str) -> Snapshot:
    """
    Parse an exported document.

    Raises:
        ParseError: raw_text is not JSON, or nests too deeply to decode
        SchemaError: not an object, lacks both 'nodes' and 'edges', or a
            record is missing required keys or holds unusable values
    """
    try:
        doc = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Document is not valid JSON: {e}") from e
    except RecursionError as e:
        raise ParseError("Document is nested too deeply") from e

    if not isinstance(doc, dict):
        raise SchemaError("Document must be a JSON object")
    if "nodes" not in doc and "edges" not in doc:
        raise SchemaError("Document has neither 'nodes' nor 'edges'")

    node_records = _records(doc, "nodes")
    edge_records = _records(doc, "edges")
    try:
        nodes = tuple(Node.from_dict(r) for r in node_records)
        edges = tuple(Edge.from_dict(r) for r in edge_records)
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
        raise SchemaError(f"Malformed node or edge record: {e}") from e

    return Snapshot(nodes=nodes, edges=edges)


def to_graph(snapshot: Snapshot) -> nx.MultiDiGraph:
    """
    Build a MultiDiGraph of the snapshot, keyed by edge id.

    Edges whose endpoints are not nodes of the snapshot still go in; networkx
    adds their missing endpoints as bare nodes without a 'label' attribute.
    """
    G = nx.MultiDiGraph()
    for n in snapshot.nodes:
        G.add_node(n.id, label=n.label)
    for e in snapshot.edges:
        G.add_edge(e.source, e.target, key=e.id)
    return G


def integrity_report(snapshot: Snapshot) -> Dict[str, List[str]]:
    """
    Check an imported snapshot for problems the editor would never create.

    Returns a dict with:
    - duplicate_node_ids: ids used by more than one node
    - dangling_edges: ids of edges whose source or target is not a node
    """
    counts = Counter(n.id for n in snapshot.nodes)
    duplicates = sorted(nid for nid, c in counts.items() if c > 1)

    G = to_graph(snapshot)
    phantom = {nid for nid, attrs in G.nodes(data=True) if "label" not in attrs}
    dangling = sorted({
        key
        for nid in phantom
        for _, _, key in list(G.in_edges(nid, keys=True)) + list(G.out_edges(nid, keys=True))
    })

    return {"duplicate_node_ids": duplicates, "dangling_edges": dangling}
