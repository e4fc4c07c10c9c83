from __future__ import annotations

from collections.abc import Callable
from typing import Any

from rich.markup import escape

from ..document import TableDocument
from ..grid import TableGrid
from ..navigation import NAVIGATION_KEYS, copy_down
from ..quickedit import Change, QuickEdit
from ..status import STATUS_ORDER

ERROR_BANNER_TEXT = "Correct errors in the highlighted fields before continuing."
_STATUS_CLASSES: tuple[str, ...] = tuple(level.css_class for level in STATUS_ORDER)


class BannerObserver:
    """Keeps the text of the error banner in sync with QuickEdit notifications."""

    def __init__(self, on_change: Callable[[str], None] | None = None) -> None:
        self.text = ""
        self._on_change = on_change

    def _set(self, text: str) -> None:
        self.text = text
        if self._on_change is not None:
            self._on_change(text)

    def clear_error_notification(self) -> None:
        self._set("")

    def notify_errors(self) -> None:
        self._set(ERROR_BANNER_TEXT)


def session_status_line(quick_edit: QuickEdit, grid: TableGrid) -> str:
    mode = "edit" if quick_edit.is_active else "view"
    fields = len(grid.fields())
    marked = len(grid.messages())
    text = f"Mode: {mode} | Rows: {grid.row_count()} | Fields: {fields}"
    if marked:
        text += f" | Marked: {marked}"
    return text


def run_quickedit_session(document: TableDocument) -> list[Change] | None:
    """Open a Textual table with an edit mode; return changes on save (None when quit).

    Textual is imported lazily so headless use of the package stays lightweight.
    """

    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Horizontal, Vertical, VerticalScroll
    from textual.events import Key
    from textual.widget import Widget
    from textual.widgets import (
        Button,
        DataTable,
        Footer,
        Header,
        Input,
        Label,
        Select,
        Static,
        TextArea,
    )

    from ..grid import RenderedCell, RenderedRow
    from ..models import Field, FieldKind

    class _SessionApp(App[list[Change] | None]):
        BINDINGS = [
            Binding("e", "start_edit", "Edit"),
            Binding("escape", "cancel_edit", "Cancel"),
            Binding("ctrl+s", "save", "Save"),
            Binding("ctrl+d", "copy_down", "Copy down"),
            Binding("q", "quit_session", "Quit"),
        ]

        CSS = """
        Screen {
            background: #2e3436;
            color: #eeeeec;
        }
        #banner {
            height: auto;
            padding: 0 1;
            color: #ffffff;
            background: #a40000;
        }
        #banner.-empty {
            display: none;
        }
        #view-table {
            height: 1fr;
            border: round #729fcf;
        }
        #editor {
            height: 1fr;
            border: round #fce94f;
            display: none;
        }
        .qe-row {
            height: auto;
        }
        .qe-cell {
            width: 1fr;
            height: auto;
            padding: 0 1;
        }
        .qe-head {
            width: 1fr;
            text-style: bold;
            padding: 0 1;
        }
        .qe-footer {
            color: #888a85;
        }
        .qe-message {
            height: auto;
            color: #fce94f;
        }
        .qe-row.quickedit-haserror {
            background: #5c1a1a;
        }
        .qe-row.quickedit-haswarn {
            background: #5c4b1a;
        }
        .qe-cell.quickedit-haserror Input {
            border: tall #ef2929;
        }
        .qe-cell.quickedit-haswarn Input {
            border: tall #fcaf3e;
        }
        .qe-cell.quickedit-hassuccess Input {
            border: tall #8ae234;
        }
        .qe-cell.quickedit-hasinfo Input {
            border: tall #729fcf;
        }
        #status {
            height: 1;
            padding: 0 1;
            color: #fce94f;
            background: #555753;
        }
        """

        def __init__(self) -> None:
            super().__init__()
            self._grid = document.build_grid()
            self._observer = BannerObserver(self._on_banner_changed)
            self._quick_edit = QuickEdit(
                self._grid,
                changes_always_include=document.changes_always_include,
                observer=self._observer,
            )
            self._field_by_widget: dict[Widget, Field] = {}
            self._widget_by_field: dict[Field, Widget] = {}
            self._copy_buttons: dict[Button, Field] = {}
            self._row_boxes: dict[int, Widget] = {}
            self._cell_boxes: dict[RenderedCell, tuple[Widget, Static]] = {}
            self._restyle_pending = False
            self._ready = False

        def compose(self) -> ComposeResult:
            yield Header(show_clock=False)
            yield Static("", id="banner", classes="-empty")
            yield DataTable(id="view-table")
            yield VerticalScroll(id="editor")
            yield Static("", id="status")
            yield Footer()

        def on_mount(self) -> None:
            self._ready = True
            self._grid.listener = self
            self.grid_rendered()
            self.query_one("#view-table", DataTable).focus()

        # -- GridListener --------------------------------------------------

        def grid_rendered(self) -> None:
            table = self.query_one("#view-table", DataTable)
            editor = self.query_one("#editor", VerticalScroll)
            if self._grid.edit_marker:
                table.display = False
                editor.display = True
                self._rebuild_editor(editor)
                self.call_after_refresh(self._focus_first_field)
            else:
                editor.display = False
                editor.remove_children()
                self._forget_widgets()
                table.display = True
                self._refresh_table(table)
                table.focus()
            self._update_status()

        def grid_status_changed(self) -> None:
            if self._restyle_pending:
                return
            self._restyle_pending = True
            self.call_after_refresh(self._restyle)

        def grid_focus(self, field: Field) -> None:
            widget = self._widget_by_field.get(field)
            if widget is None:
                return
            widget.focus()
            if isinstance(widget, Input):
                widget.select_all()

        def grid_scroll(self, row_index: int) -> None:
            box = self._row_boxes.get(row_index)
            if box is not None:
                box.scroll_visible()

        # -- rendering -------------------------------------------------------

        def _forget_widgets(self) -> None:
            self._field_by_widget.clear()
            self._widget_by_field.clear()
            self._copy_buttons.clear()
            self._row_boxes.clear()
            self._cell_boxes.clear()

        def _refresh_table(self, table: DataTable) -> None:
            table.clear(columns=True)
            for column in self._grid.columns:
                title = column.title if not column.sortable else f"{column.title} ⇅"
                table.add_column(title, key=column.key)
            for row in self._grid.rows:
                table.add_row(*(cell.text for cell in row.cells), key=str(row.index))
            footer = self._grid.footer_row
            if footer is not None:
                table.add_row(*(f"[dim]{cell.text}[/dim]" for cell in footer.cells), key="footer")

        def _field_widget(self, field: Field) -> Widget:
            if field.kind is FieldKind.MULTILINE:
                return TextArea(field.value)
            if field.kind is FieldKind.CHOICE:
                options = [(opt, opt) for opt in field.options if opt]
                if field.value and field.value in field.options:
                    return Select(options, value=field.value)
                return Select(options)
            return Input(value=field.value)

        def _build_cell(self, cell: RenderedCell) -> Widget:
            children: list[Widget] = []
            field = cell.field
            if field is None:
                children.append(Static(cell.text))
            else:
                widget = self._field_widget(field)
                self._field_by_widget[widget] = field
                self._widget_by_field[field] = widget
                children.append(widget)
                if cell.copy_down:
                    button = Button("↓", classes="qe-copy-down")
                    button.tooltip = "Copy down"
                    self._copy_buttons[button] = field
                    children.append(button)
            message = Static(escape(cell.message), classes="qe-message")
            children.append(message)
            box = Vertical(*children, classes="qe-cell")
            self._cell_boxes[cell] = (box, message)
            return box

        def _build_row(self, row: RenderedRow) -> Widget:
            box = Horizontal(*(self._build_cell(cell) for cell in row.cells), classes="qe-row")
            self._row_boxes[row.index] = box
            return box

        def _rebuild_editor(self, editor: VerticalScroll) -> None:
            editor.remove_children()
            self._forget_widgets()
            children: list[Widget] = [
                Horizontal(
                    *(Label(column.title, classes="qe-head") for column in self._grid.columns),
                    classes="qe-row",
                )
            ]
            children.extend(self._build_row(row) for row in self._grid.rows)
            footer = self._grid.footer_row
            if footer is not None:
                children.append(
                    Horizontal(
                        *(Static(cell.text, classes="qe-cell qe-footer") for cell in footer.cells),
                        classes="qe-row",
                    )
                )
            editor.mount(*children)

        def _restyle(self) -> None:
            self._restyle_pending = False
            for row in self._grid.rows:
                box = self._row_boxes.get(row.index)
                if box is None:
                    continue
                box.remove_class(*_STATUS_CLASSES)
                if row.status is not None:
                    box.add_class(row.status.css_class)
                for cell in row.cells:
                    entry = self._cell_boxes.get(cell)
                    if entry is None:
                        continue
                    cell_box, message = entry
                    cell_box.remove_class(*_STATUS_CLASSES)
                    if cell.status is not None:
                        cell_box.add_class(cell.status.css_class)
                    message.update(escape(cell.message))
            self._update_status()

        def _sync_widgets(self) -> None:
            for widget, field in self._field_by_widget.items():
                if isinstance(widget, Input) and widget.value != field.value:
                    widget.value = field.value
                elif isinstance(widget, TextArea) and widget.text != field.value:
                    widget.load_text(field.value)
                elif isinstance(widget, Select) and field.value in field.options and field.value:
                    widget.value = field.value

        def _focus_first_field(self) -> None:
            fields = self._grid.fields()
            if fields:
                self.grid_focus(fields[0])

        def _focused_field(self) -> Field | None:
            focused = self.focused
            if focused is None:
                return None
            return self._field_by_widget.get(focused)

        def _on_banner_changed(self, text: str) -> None:
            if not self._ready:
                return
            banner = self.query_one("#banner", Static)
            banner.update(text)
            banner.set_class(not text, "-empty")

        def _set_status(self, text: str) -> None:
            self.query_one("#status", Static).update(text)

        def _update_status(self) -> None:
            self._set_status(session_status_line(self._quick_edit, self._grid))

        # -- events ----------------------------------------------------------

        def on_key(self, event: Key) -> None:
            if event.key not in NAVIGATION_KEYS or not self._quick_edit.is_active:
                return
            field = self._focused_field()
            if field is None:
                return
            if self._grid.handle_key(field, event.key):
                event.stop()
                event.prevent_default()

        def on_input_changed(self, event: Input.Changed) -> None:
            field = self._field_by_widget.get(event.input)
            if field is not None:
                field.value = event.value

        def on_text_area_changed(self, event: TextArea.Changed) -> None:
            field = self._field_by_widget.get(event.text_area)
            if field is not None:
                field.value = event.text_area.text

        def on_select_changed(self, event: Select.Changed) -> None:
            field = self._field_by_widget.get(event.select)
            if field is not None:
                value: Any = event.value
                field.value = value if isinstance(value, str) else ""

        def on_button_pressed(self, event: Button.Pressed) -> None:
            field = self._copy_buttons.get(event.button)
            if field is None:
                return
            written = copy_down(self._grid, field)
            self._sync_widgets()
            self._set_status(f"Copied down into {written} rows")

        def on_data_table_header_selected(self, event: DataTable.HeaderSelected) -> None:
            key = event.column_key.value
            if key is None or not self._grid.sort_by(key):
                self._set_status("Column is not sortable")

        # -- actions ---------------------------------------------------------

        def action_start_edit(self) -> None:
            if not self._quick_edit.start():
                self._set_status("Already in edit mode")

        def action_cancel_edit(self) -> None:
            if self._quick_edit.is_active:
                self._quick_edit.cancel()
                self._set_status("Edit mode cancelled; edits discarded")

        def action_copy_down(self) -> None:
            field = self._focused_field()
            if field is None:
                self._set_status("Focus a field to copy its value down.")
                return
            written = copy_down(self._grid, field)
            self._sync_widgets()
            self._set_status(f"Copied down into {written} rows")

        def action_save(self) -> None:
            if not self._quick_edit.is_active:
                self._set_status("Press E to enter edit mode first.")
                return
            changes = self._quick_edit.get_changes()
            if changes is False:
                self._set_status("Validation failed; fix the highlighted fields.")
                return
            self.exit(changes)

        def action_quit_session(self) -> None:
            self.exit(None)

    return _SessionApp().run()
