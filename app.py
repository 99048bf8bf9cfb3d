"""
Main NiceGUI application for the diagram editor.

Thin presentation shell around DiagramEditor: a toolbar (add, delete, connect,
undo, redo, import, export), a side panel for the selected node's label and
colour, and an ECharts canvas. Every user action is forwarded to one of the
editor's public operations and the chart is redrawn from the active snapshot.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import ui

load_dotenv()

from src.config import load_config, get_store_backend, get_store_dir, get_history_limit, get_log_level
from src.paths import ensure_dir
from src.storage import create_store, TimelinePersistence
from src.editor import DiagramEditor
from src.graph_store import InvalidReference, free_position
from src.codec import EXPORT_FILENAME
from src.chart_builder import build_echart_options, normalize_click_payload, resolve_node_id_from_payload, REQUESTED_EVENT_KEYS

config = load_config()
logging.basicConfig(
    level=get_log_level(config),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

# Arrow-key nudge distance in canvas units
NUDGE_STEP = 10.0
# Canvas-space spot new nodes start from; repeated adds are offset diagonally
VIEWPORT_CENTER = (300.0, 200.0)
# Seconds of colour-picker inactivity before the colour becomes an undo step
COLOR_COMMIT_DELAY = 0.6


def create_editor() -> DiagramEditor:
    backend = get_store_backend(config)
    store_dir = ensure_dir(get_store_dir(config)) if backend == 'file' else None
    store = create_store(backend, store_dir)
    logger.info(f"Using {store.backend_type} store")
    return DiagramEditor(TimelinePersistence(store), history_limit=get_history_limit(config))


editor = create_editor()


@ui.page('/')
def index():
    state = {'chart': None, 'connect_source': None, 'color_timer': None, 'pending_color': None}

    def redraw(snapshot=None):
        state['chart'].options.clear()
        state['chart'].options.update(build_echart_options(snapshot or editor.snapshot, state['connect_source']))
        state['chart'].update()

    def refresh():
        flush_color()
        redraw()
        render_panel.refresh()
        undo_btn.set_enabled(editor.can_undo)
        redo_btn.set_enabled(editor.can_redo)

    def flush_color():
        if state['color_timer'] is not None:
            state['color_timer'].deactivate()
            state['color_timer'] = None
        if state['pending_color'] is not None:
            editor.set_color(*state['pending_color'])
            state['pending_color'] = None

    def commit_color():
        flush_color()
        # the panel is left alone so the colour input keeps focus
        redraw()
        undo_btn.set_enabled(editor.can_undo)
        redo_btn.set_enabled(editor.can_redo)

    def preview_color(node_id, value):
        if state['color_timer'] is not None:
            state['color_timer'].deactivate()
        state['pending_color'] = (node_id, value)
        redraw(editor.preview_color(node_id, value))
        state['color_timer'] = ui.timer(COLOR_COMMIT_DELAY, commit_color, once=True)

    def select_only(node_id):
        changes = [
            {'type': 'select', 'id': n.id, 'selected': n.id == node_id}
            for n in editor.nodes
            if n.selected != (n.id == node_id)
        ]
        if changes:
            editor.apply_changes(changes)

    def handle_chart_click(event):
        raw_payload = event.args if hasattr(event, 'args') else event
        payload = normalize_click_payload(raw_payload)
        node_id = resolve_node_id_from_payload(payload, editor.snapshot)

        if state['connect_source'] and node_id:
            source = state['connect_source']
            state['connect_source'] = None
            try:
                editor.connect(source, node_id)
            except InvalidReference as e:
                ui.notify(str(e), type='negative')
        else:
            select_only(node_id)
        refresh()

    def add_node():
        node = editor.add_node(free_position(editor.nodes, VIEWPORT_CENTER))
        select_only(node.id)
        refresh()

    def delete_selected():
        editor.delete_selected()
        refresh()

    def start_connect():
        selected = editor.selected_node
        if not selected:
            ui.notify('Select a source node first', type='warning')
            return
        state['connect_source'] = selected.id
        ui.notify(f'Click the node to connect "{selected.label}" to', position='bottom')
        refresh()

    def undo():
        flush_color()
        editor.undo()
        refresh()

    def redo():
        flush_color()
        editor.redo()
        refresh()

    def export():
        flush_color()
        ui.download(editor.export_text().encode('utf-8'), EXPORT_FILENAME)

    def handle_upload(e):
        try:
            raw = e.content.read().decode('utf-8')
        except UnicodeDecodeError:
            ui.notify('Import failed: file is not UTF-8 text', type='negative')
            return
        flush_color()
        result = editor.import_text(raw)
        if result.ok:
            ui.notify('Diagram imported', type='positive')
            if result.warnings:
                ui.notify(f'Imported with problems: {result.warnings}', type='warning')
        else:
            ui.notify(f'Import failed: {result.error}', type='negative')
        refresh()

    def nudge(dx, dy):
        selected = editor.selected_node
        if not selected:
            return
        editor.apply_changes([{
            'type': 'position',
            'id': selected.id,
            'position': {'x': selected.position.x + dx, 'y': selected.position.y + dy},
        }])
        refresh()

    def handle_key(e):
        # ui.keyboard already ignores keys typed into the label input
        if not e.action.keydown:
            return
        if e.key.name == 'Delete':
            delete_selected()
        elif e.key.name == 'ArrowLeft':
            nudge(-NUDGE_STEP, 0)
        elif e.key.name == 'ArrowRight':
            nudge(NUDGE_STEP, 0)
        elif e.key.name == 'ArrowUp':
            nudge(0, -NUDGE_STEP)
        elif e.key.name == 'ArrowDown':
            nudge(0, NUDGE_STEP)

    ui.keyboard(on_key=handle_key)

    # Toolbar
    with ui.row().classes('items-center gap-2 p-2'):
        ui.button('Add Node', icon='add', on_click=add_node)
        ui.button('Delete', icon='delete', on_click=delete_selected).props('color=negative')
        ui.button('Connect', icon='share', on_click=start_connect)
        undo_btn = ui.button(icon='undo', on_click=undo).tooltip('Undo')
        redo_btn = ui.button(icon='redo', on_click=redo).tooltip('Redo')
        ui.button('Export', icon='download', on_click=export).props('flat')
        ui.upload(label='Import', auto_upload=True, on_upload=handle_upload).props('accept=.json flat dense')

    with ui.row().classes('w-full no-wrap'):
        state['chart'] = ui.echart(build_echart_options(editor.snapshot)).style('width: 75vw; height: 80vh;')
        state['chart'].on('componentClick', handle_chart_click, REQUESTED_EVENT_KEYS)

        @ui.refreshable
        def render_panel():
            node = editor.selected_node
            with ui.card().classes('w-72'):
                ui.label('Style Editor').classes('text-lg font-bold')
                ui.separator()
                if not node:
                    ui.label('Select a node to edit it.').classes('text-gray-500')
                    return
                node_id = node.id
                ui.input(
                    'Label',
                    value=node.label,
                    on_change=lambda e: editor.update_label(node_id, e.value),
                ).on('focus', lambda: editor.set_editing(node_id, True)) \
                 .on('blur', lambda: (editor.set_editing(node_id, False), refresh())) \
                 .classes('w-full')
                ui.color_input(
                    'Background',
                    value=node.background_color or '#ffffff',
                    on_change=lambda e: preview_color(node_id, e.value),
                ).classes('w-full')

        render_panel()

    undo_btn.set_enabled(editor.can_undo)
    redo_btn.set_enabled(editor.can_redo)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Diagram Editor',
        port=8081,
        reload=not getattr(sys, 'frozen', False),
    )
