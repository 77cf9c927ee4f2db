# pages/roster.py
# Rank list page: manual entry, CSV paste/upload import, ranking table, exports

import dash
from dash import html, dcc, Input, Output, State, callback, clientside_callback, ClientsideFunction, dash_table, no_update, ALL
import dash_bootstrap_components as dbc

import data_processing as dp
from config import CONFIG
from utils.errors import RosterError, ValidationError
from utils.logger import get_logger
from utils.models import DESCENDING, EXPORT_COLUMNS, Notice, RosterState, records_from_rows

# Register page
dash.register_page(__name__, path="/", name="Rank List")

log = get_logger("page")

SUBJECT_SLOTS = list(range(1, CONFIG.SUBJECT_COUNT + 1))


# ==================== Helpers ====================

def _state_from_store(rows, sort_order):
    return RosterState(students=records_from_rows(rows), sort_order=sort_order or DESCENDING)


def _store_rows(state):
    return [s.to_row() for s in state.students]


def _toast(notice):
    """(is_open, header, children, icon) for a dbc.Toast."""
    if notice is None:
        return no_update, no_update, no_update, no_update
    return True, notice.title, notice.message, notice.level


def _roster_outputs(roster=no_update, error=None, reset_fields=False, notice=None):
    """
    Output tuple for update_roster.

    error: message to show, "" to clear the alert, None to leave it.
    """
    if error is None:
        error_children, error_open = no_update, no_update
    else:
        error_children, error_open = error, bool(error)

    if reset_fields:
        fields = ("", "", None, [None] * len(SUBJECT_SLOTS))
    else:
        fields = (no_update, no_update, no_update, [no_update] * len(SUBJECT_SLOTS))

    return (roster, error_children, error_open, *fields, *_toast(notice))


# ==================== Styles (CSS injected via <style>) ====================

PAGE_CSS = r"""
:root{
  --bg: #f5f7fb;
  --card: #ffffff;
  --primary:#1f2937;
  --muted:#6b7280;
  --shadow: 0 8px 24px rgba(16,24,40,.08);
}

.rnk-wrap{ background: var(--bg); padding: 18px; border-radius: 14px; }

.rnk-card{
  background: var(--card);
  border: 0 !important;
  border-radius: 14px !important;
  box-shadow: var(--shadow);
}

.rnk-title{ color: var(--primary); letter-spacing:.5px; }

.rnk-controls .btn, .rnk-controls .form-control{ border-radius: 10px !important; }

.sort-badge{ cursor: pointer; }

.dash-table-container .dash-spreadsheet-container .dash-spreadsheet-inner td,
.dash-table-container .dash-spreadsheet-container .dash-spreadsheet-inner th{
  border-color:#e5e7eb !important;
}
"""


def style_block():
    return dcc.Markdown(f"<style>{PAGE_CSS}</style>", dangerously_allow_html=True)


# ==================== Layout ====================

layout = dbc.Container([
    style_block(),

    # Bootstrap Icons (for bi- classes)
    html.Link(rel="stylesheet",
              href="https://cdn.jsdelivr.net/npm/bootstrap-icons@1.11.3/font/bootstrap-icons.css"),

    html.Div([
        html.H3(CONFIG.APP_TITLE, className="rnk-title text-center fw-bold mb-2"),
        html.P("Add students, rank them by total marks and export the list.",
               className="text-center text-muted mb-0")
    ], className="rnk-wrap mb-3 rnk-card p-3"),

    dbc.Alert(id="input-error", color="danger", is_open=False, dismissable=True,
              className="mb-3"),

    # Entry form
    dbc.Card(dbc.CardBody([
        dbc.Row([
            dbc.Col(dbc.Input(id="student-name", placeholder="Name", type="text"), md=6, xs=12),
            dbc.Col(dbc.Input(id="enrollment-number", placeholder="Enrollment Number", type="text"),
                    md=6, xs=12),
        ], className="g-2 mb-2"),

        dbc.Checklist(
            id="use-total-marks",
            options=[{"label": "Use Total Marks", "value": "total"}],
            value=[],
            switch=True,
            className="mb-2"
        ),

        dbc.Row([
            dbc.Col(dbc.Input(id={"type": "subject-mark", "index": i}, type="number",
                              placeholder=f"Subject {i} Marks"))
            for i in SUBJECT_SLOTS
        ], id="subject-marks-row", className="g-2 mb-2"),

        html.Div(
            dbc.Input(id="total-marks", type="number", placeholder="Total Marks"),
            id="total-marks-wrap", style={"display": "none"}, className="mb-2"
        ),

        dbc.Button([html.I(className="bi bi-person-plus-fill me-2"), "Add Student"],
                   id="add-student-btn", color="secondary", className="w-100"),
    ]), className="rnk-card rnk-controls mb-3"),

    # Import
    dbc.Card(dbc.CardBody([
        html.H6([html.I(className="bi bi-upload me-2 text-primary"), "Import"],
                className="fw-bold mb-2"),
        dbc.Textarea(id="csv-text", placeholder="Paste CSV data here", rows=4, className="mb-2"),
        dbc.Button("Import CSV Data", id="import-btn", color="info", className="mb-3"),
        dcc.Upload(
            id="upload-data",
            children=html.Div(["📁 Drag and Drop or ", html.A("Select CSV / Excel File")]),
            style={
                'width': '100%', 'height': '60px', 'lineHeight': '60px',
                'borderWidth': '2px', 'borderStyle': 'dashed',
                'borderRadius': '12px', 'textAlign': 'center',
                'backgroundColor': '#f9fafb', 'cursor': 'pointer'
            },
            multiple=False
        ),
    ]), className="rnk-card mb-3"),

    # Results
    dbc.Card(dbc.CardBody([
        html.Div([
            html.H6([html.I(className="bi bi-clipboard2-data me-2 text-primary"), "Rank List"],
                    className="fw-bold mb-0 me-auto"),
            html.Span("Total Marks: ", className="text-muted small me-1"),
            dbc.Button(dbc.Badge(id="sort-badge", className="sort-badge"),
                       id="sort-toggle", color="link", size="sm", className="p-0"),
        ], className="d-flex align-items-center mb-3"),

        html.Div(
            dash_table.DataTable(
                id="ranking-table",
                columns=[{"name": c, "id": c} for c in EXPORT_COLUMNS],
                data=[],
                page_size=25,
                style_cell={
                    'textAlign': 'center',
                    'fontFamily': 'Inter, Segoe UI, system-ui, -apple-system, Arial',
                    'fontSize': 13,
                    'padding': '8px',
                },
                style_header={
                    'backgroundColor': '#1f2937',
                    'color': 'white',
                    'fontWeight': '700',
                    'border': '0'
                },
                style_data_conditional=[
                    {'if': {'row_index': 'odd'}, 'backgroundColor': '#f9fafb'},
                    {'if': {'filter_query': '{Rank} = 1'}, 'backgroundColor': '#fff8dc', 'fontWeight': 'bold'},
                    {'if': {'filter_query': '{Rank} = 2'}, 'backgroundColor': '#f3f4f6', 'fontWeight': 'bold'},
                    {'if': {'filter_query': '{Rank} = 3'}, 'backgroundColor': '#fff4e6', 'fontWeight': 'bold'},
                ],
                style_as_list_view=True,
            ),
            id="table-wrap", style={"display": "none"}
        ),
        html.P("No students yet.", id="empty-hint", className="text-muted mb-0"),

        dbc.ButtonGroup([
            dbc.Button([html.I(className="bi bi-download me-2"), "Export to CSV"],
                       id="export-csv", color="primary", outline=True, className="me-1"),
            dbc.Button("Export Excel", id="export-xlsx", color="success", outline=True),
        ], className="mt-3"),
    ]), className="rnk-card"),

    dbc.Toast(id="roster-toast", is_open=False, dismissable=True, duration=4000,
              style={"position": "fixed", "top": 16, "right": 16, "zIndex": 1080}),
    dbc.Toast(id="export-toast", is_open=False, dismissable=True, duration=4000,
              style={"position": "fixed", "top": 96, "right": 16, "zIndex": 1080}),

    # Debounced re-ranking runs in assets/roster.js
    dcc.Store(id="recompute-delay", data=CONFIG.DEBOUNCE_MS),
    dcc.Store(id="recompute-scheduled"),

    # Hidden downloads
    dcc.Download(id="download-csv"),
    dcc.Download(id="download-xlsx"),

    dcc.Store(id="roster-data", data=[]),
    dcc.Store(id="sort-order", data=DESCENDING),
], fluid=True, className="pb-4")


# ==================== Callbacks ====================

@callback(
    Output("subject-marks-row", "style"),
    Output("total-marks-wrap", "style"),
    Input("use-total-marks", "value")
)
def apply_entry_mode(mode_values):
    if "total" in (mode_values or []):
        return {"display": "none"}, {"display": "block"}
    return {}, {"display": "none"}


@callback(
    Output("sort-order", "data"),
    Input("sort-toggle", "n_clicks"),
    State("sort-order", "data"),
    prevent_initial_call=True
)
def toggle_sort(n_clicks, sort_order):
    return dp.toggle_sort_order(sort_order or DESCENDING)


@callback(
    Output("sort-badge", "children"),
    Input("sort-order", "data")
)
def show_sort_order(sort_order):
    return "Descending" if (sort_order or DESCENDING) == DESCENDING else "Ascending"


@callback(
    Output("roster-data", "data"),
    Output("input-error", "children"),
    Output("input-error", "is_open"),
    Output("student-name", "value"),
    Output("enrollment-number", "value"),
    Output("total-marks", "value"),
    Output({"type": "subject-mark", "index": ALL}, "value"),
    Output("roster-toast", "is_open"),
    Output("roster-toast", "header"),
    Output("roster-toast", "children"),
    Output("roster-toast", "icon"),
    Input("add-student-btn", "n_clicks"),
    Input("import-btn", "n_clicks"),
    Input("upload-data", "contents"),
    State("student-name", "value"),
    State("enrollment-number", "value"),
    State("use-total-marks", "value"),
    State("total-marks", "value"),
    State({"type": "subject-mark", "index": ALL}, "value"),
    State("csv-text", "value"),
    State("upload-data", "filename"),
    State("roster-data", "data"),
    State("sort-order", "data"),
    # A second add can't start while the first is in flight
    running=[
        (Output("add-student-btn", "disabled"), True, False),
        (Output("import-btn", "disabled"), True, False),
    ],
    prevent_initial_call=True
)
def update_roster(add_clicks, import_clicks, upload_contents,
                  name, enrollment_number, mode_values, total, marks, csv_text, filename,
                  rows, sort_order):
    """
    Adds and imports. Ranking is left to schedule_recompute, which re-ranks
    the store once changes go quiet.
    """
    trigger = dash.ctx.triggered_id
    state = _state_from_store(rows, sort_order)

    if trigger == "add-student-btn":
        try:
            state = dp.add_record(state, name, enrollment_number, marks=marks, total=total,
                                  use_total_marks="total" in (mode_values or []))
        except ValidationError as exc:
            log.warning("Rejected entry: %s", exc.message)
            return _roster_outputs(error=exc.message)
        return _roster_outputs(roster=_store_rows(state), error="", reset_fields=True)

    if trigger in ("import-btn", "upload-data"):
        try:
            if trigger == "upload-data":
                students = dp.import_uploaded_file(upload_contents, filename)
            else:
                students = dp.import_csv_text(csv_text)
        except RosterError as exc:
            log.warning("Import failed: %s", exc.message)
            return _roster_outputs(notice=Notice(title=exc.title, message=exc.message, level="danger"))
        state = state.with_students(students)
        notice = Notice(title="CSV import successful!",
                        message="Student data has been successfully imported.", level="success")
        return _roster_outputs(roster=_store_rows(state), notice=notice)

    return _roster_outputs()


# Every store or sort-order change restarts the countdown; when it runs out
# the store is re-ranked in place as it is at that moment.
clientside_callback(
    ClientsideFunction(namespace="roster", function_name="schedule_recompute"),
    Output("recompute-scheduled", "data"),
    Input("roster-data", "data"),
    Input("sort-order", "data"),
    State("recompute-delay", "data"),
)


@callback(
    Output("ranking-table", "data"),
    Output("table-wrap", "style"),
    Output("empty-hint", "style"),
    Input("roster-data", "data")
)
def render_table(rows):
    students = records_from_rows(rows)
    if not students:
        return [], {"display": "none"}, {}
    data = dp.roster_frame(students).to_dict("records")
    return data, {"overflowX": "auto"}, {"display": "none"}


# ==================== Exports ====================

@callback(
    Output("download-csv", "data"),
    Output("download-xlsx", "data"),
    Output("export-toast", "is_open"),
    Output("export-toast", "header"),
    Output("export-toast", "children"),
    Output("export-toast", "icon"),
    Input("export-csv", "n_clicks"),
    Input("export-xlsx", "n_clicks"),
    State("roster-data", "data"),
    prevent_initial_call=True
)
def export_roster(csv_clicks, xlsx_clicks, rows):
    """Download the roster as CSV or Excel, in table order."""
    students = records_from_rows(rows)
    if not students:
        notice = Notice(title="No data to export!",
                        message="Please add student data to the table.", level="info")
        return (no_update, no_update, *_toast(notice))

    if dash.ctx.triggered_id == "export-xlsx":
        df = dp.export_excel_frame(students)
        download = dcc.send_data_frame(df.to_excel, CONFIG.EXCEL_FILENAME,
                                       sheet_name="Rank List", index=False)
        notice = Notice(title="Excel export successful!",
                        message="Your data has been successfully exported.", level="success")
        return (no_update, download, *_toast(notice))

    text = dp.export_csv_text(students)
    download = dcc.send_string(text, CONFIG.EXPORT_FILENAME, type="text/csv")
    notice = Notice(title="CSV export successful!",
                    message="Your data has been successfully exported.", level="success")
    return (download, no_update, *_toast(notice))
