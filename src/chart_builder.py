"""
ECharts options builder for the diagram canvas.

Converts the active Snapshot into an ECharts 'graph' series with fixed node
positions (layout 'none'), node colours from the node style and edges as
directed links.
"""

from typing import Any, Dict, Optional

from src.models import Snapshot

# Event keys we request from ECharts click events
REQUESTED_EVENT_KEYS = ['componentType', 'name', 'seriesType', 'value', 'dataType']

DEFAULT_NODE_COLOR = '#ffffff'
DEFAULT_TEXT_COLOR = '#000000'
SELECTED_BORDER = '#1a73e8'
EDITING_BORDER = '#f59e0b'
EDGE_COLOR = '#b1b1b7'


def build_echart_options(snapshot: Snapshot, connect_source: Optional[str] = None) -> Dict[str, Any]:
    """
    Build ECharts options from a snapshot.

    Args:
        snapshot: Active graph
        connect_source: Node id a pending connection starts from (highlighted)

    Returns:
        ECharts options dict ready for ui.echart()
    """
    data = []
    for node in snapshot.nodes:
        border = None
        if node.is_editing:
            border = EDITING_BORDER
        elif node.selected or node.id == connect_source:
            border = SELECTED_BORDER

        item_style = {
            'color': node.background_color or DEFAULT_NODE_COLOR,
            'borderColor': border or '#1a192b',
            'borderWidth': 3 if border else 1,
        }
        data.append({
            'id': node.id,
            'name': node.id,
            'x': node.position.x,
            'y': node.position.y,
            'symbol': 'roundRect',
            'symbolSize': [150, 40],
            'itemStyle': item_style,
            'label': {
                'show': True,
                'formatter': node.label or ' ',
                'color': node.text_color or DEFAULT_TEXT_COLOR,
            },
        })

    links = []
    for edge in snapshot.edges:
        link = {
            'id': edge.id,
            'source': edge.source,
            'target': edge.target,
            'lineStyle': {'color': EDGE_COLOR, 'width': 3 if edge.selected else 1.5},
        }
        if edge.label:
            link['label'] = {'show': True, 'formatter': edge.label}
        links.append(link)

    return {
        'animation': False,
        'tooltip': {'show': False},
        'series': [{
            'type': 'graph',
            'layout': 'none',
            'coordinateSystem': None,
            'roam': True,
            'edgeSymbol': ['none', 'arrow'],
            'edgeSymbolSize': 8,
            'data': data,
            'links': links,
        }],
    }


def normalize_click_payload(raw_payload: Any) -> Dict[str, Any]:
    """Normalize NiceGUI chart click payloads into a dictionary for easier parsing."""
    if isinstance(raw_payload, dict):
        return raw_payload
    if isinstance(raw_payload, (list, tuple)):
        return {
            REQUESTED_EVENT_KEYS[i]: raw_payload[i]
            for i in range(min(len(raw_payload), len(REQUESTED_EVENT_KEYS)))
        }
    if isinstance(raw_payload, str):
        return {'name': raw_payload}
    return {}


def resolve_node_id_from_payload(payload: Dict[str, Any], snapshot: Snapshot) -> Optional[str]:
    """Return a node id from a normalized payload, validated against the snapshot."""
    if not isinstance(payload, dict):
        return None
    if payload.get('componentType') != 'series':
        return None
    if payload.get('dataType') == 'edge':
        return None

    node_id = payload.get('name')
    if not node_id:
        return None

    if any(n.id == node_id for n in snapshot.nodes):
        return node_id

    for node in snapshot.nodes:
        if node.label == node_id:
            return node.id
    return None
