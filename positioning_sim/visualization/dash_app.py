"""Interactive Dash UI for the positioning network simulator.

Run with:
    python -m positioning_sim.visualization.dash_app

Opens at http://127.0.0.1:7860
"""

from __future__ import annotations

import logging
from typing import Any

import dash
from dash import dcc, html, ctx, Input, Output, State, ALL, no_update

from ..config import DEFAULT_N_MEASUREMENTS, HOST, LOG_LEVEL, POLL_INTERVAL_MS, PORT
from ..core.errors import ConfigValidationError, EngineError, SimulationBusyError
from ..forms.fields import FIELDS_BY_NAME, RANGE, FieldSpec
from ..forms.normalizer import normalize, validate
from ..logging_config import setup_logging
from ..overlays.builder import OverlayGeometryBuilder
from ..simulation.driver import DriverSnapshot, DriverState
from ..simulation.synthetic import SyntheticEngine
from .figures import overlay_figure, stats_figure
from .session import BackgroundSession

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  Session state
# ═══════════════════════════════════════════════════════════════════════

_session = BackgroundSession(SyntheticEngine(seed=0))
_builder = OverlayGeometryBuilder()

# (nodes tuple, display options) of the last rendered overlay
_rendered: tuple[tuple, tuple[str, ...]] | None = None

_SECTIONS: list[tuple[str, tuple[str, ...]]] = [
    ("Network", ("nNodes", "nEpochs", "h3Resolution", "assertedPositionStddev")),
    ("Messages", ("betaRange", "betaStddev", "tauRange", "tauStddev", "messageDistanceMax")),
    ("Estimator", (
        "modelPositionStddev", "modelBeta", "modelBetaStddev", "modelTau",
        "modelTauStddev", "modelTofObservationStddev",
        "leastSquaresIterations", "leastSquaresTolerance",
    )),
]

_STATE_LABELS = {
    DriverState.IDLE: "Idle",
    DriverState.INITIALIZING: "Initializing",
    DriverState.RUNNING: "Running",
    DriverState.RESETTING: "Resetting",
}


# ═══════════════════════════════════════════════════════════════════════
#  Form helpers
# ═══════════════════════════════════════════════════════════════════════


def _field_input(spec: FieldSpec) -> html.Div:
    """Label, input(s), help popup and error slot for one field."""
    style = {"width": "100%"}
    if spec.kind == RANGE:
        lo, hi = spec.default
        inputs = html.Div([
            dcc.Input(id={"type": "field", "name": spec.name, "part": "min"},
                      type="text", value=lo, debounce=True, className="field-input",
                      style={"width": "48%"}),
            dcc.Input(id={"type": "field", "name": spec.name, "part": "max"},
                      type="text", value=hi, debounce=True, className="field-input",
                      style={"width": "48%", "marginLeft": "4%"}),
        ])
    else:
        inputs = dcc.Input(id={"type": "field", "name": spec.name, "part": "value"},
                           type="text", value=spec.default, debounce=True,
                           className="field-input", style=style)
    children: list[Any] = [html.Label(spec.title), inputs]
    if spec.help:
        children.append(html.Details([
            html.Summary("?"),
            dcc.Markdown(spec.help, className="field-help"),
        ], className="field-details"))
    children.append(html.Div(id={"type": "field-error", "name": spec.name},
                             className="field-error"))
    return html.Div(children, className="field")


def _collect_fields(values: list, ids: list[dict]) -> dict[str, Any]:
    """Rebuild the form-field mapping from pattern-matched inputs."""
    fields: dict[str, Any] = {}
    for value, cid in zip(values, ids):
        name, part = cid["name"], cid["part"]
        if part == "value":
            fields[name] = value
        else:
            pair = fields.setdefault(name, [None, None])
            pair[0 if part == "min" else 1] = value
    return fields


def _form_locked(snap: DriverSnapshot) -> bool:
    """The form is read-only from the first run until the next reset."""
    return bool(snap.nodes) or snap.state is not DriverState.IDLE


def _needs_redraw(nodes: tuple, display: tuple[str, ...]) -> bool:
    return _rendered is None or _rendered[0] is not nodes or _rendered[1] != display


# ═══════════════════════════════════════════════════════════════════════
#  Dash app + dark theme
# ═══════════════════════════════════════════════════════════════════════

app = dash.Dash(
    __name__,
    title="Positioning Network Simulator",
    suppress_callback_exceptions=True,
)

app.index_string = """<!DOCTYPE html>
<html>
<head>
    {%metas%}
    <title>{%title%}</title>
    {%favicon%}
    {%css%}
    <link rel="preconnect" href="https://fonts.googleapis.com">
    <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
    <style>
        :root {
            --bg-base: #0a0a0f;
            --bg-surface: rgba(15, 15, 25, 0.8);
            --bg-elevated: rgba(25, 25, 45, 0.6);
            --glass-border: rgba(255, 255, 255, 0.08);
            --text-primary: #e8eaed;
            --text-secondary: #9aa0a6;
            --text-muted: #5f6368;
            --accent: #00b8ff;
            --accent-green: #00ff9f;
            --accent-red: #ff0060;
            --radius-md: 12px;
        }
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body {
            background: var(--bg-base); color: var(--text-primary);
            font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
            line-height: 1.6;
        }

        /* ── Sidebar ── */
        .sidebar {
            position: fixed; top: 0; left: 0; bottom: 0; width: 340px;
            background: var(--bg-surface);
            border-right: 1px solid var(--glass-border);
            padding: 24px 20px; overflow-y: auto;
        }
        .sidebar h2 {
            font-size: 1.3em; font-weight: 700; margin-bottom: 16px;
            color: var(--accent);
        }
        .sidebar label {
            display: block; margin: 10px 0 4px 0;
            color: var(--text-secondary); font-size: 0.8em; font-weight: 500;
        }
        .sidebar-section {
            margin-top: 20px; padding-top: 16px;
            border-top: 1px solid var(--glass-border);
        }
        .sidebar-section-header {
            font-size: 0.65em; color: var(--text-muted); text-transform: uppercase;
            letter-spacing: 0.12em; font-weight: 600;
        }
        .field-input {
            background: var(--bg-elevated); color: var(--text-primary);
            border: 1px solid var(--glass-border); border-radius: 6px;
            padding: 6px 8px; font-family: inherit;
        }
        .field-input:disabled { color: var(--text-muted); }
        .field-details summary {
            cursor: pointer; color: var(--text-muted); font-size: 0.75em;
        }
        .field-help { color: var(--text-secondary); font-size: 0.75em; padding: 4px 0; }
        .field-error { color: var(--accent-red); font-size: 0.75em; min-height: 0; }

        /* ── Main area ── */
        .main-area { margin-left: 340px; padding: 24px 32px; }
        .control-bar { display: flex; gap: 10px; margin: 8px 0 16px 0; align-items: center; }
        .control-bar button {
            padding: 10px 20px; min-width: 88px;
            border: 1px solid var(--glass-border); border-radius: var(--radius-md);
            background: var(--bg-elevated); color: #fff; cursor: pointer;
            font-family: inherit; font-weight: 600;
        }
        .control-bar button.primary { background: linear-gradient(135deg, #059669, #00ff9f); }
        .control-bar button.danger { background: linear-gradient(135deg, #dc2626, #ff0060); }
        .control-bar button:disabled { opacity: 0.4; cursor: default; }

        /* ── Progress ── */
        .progress-track {
            flex: 1; height: 8px; border-radius: 999px;
            background: var(--bg-elevated); overflow: hidden;
        }
        .progress-fill { height: 100%; background: var(--accent); transition: width 0.2s; }
        .status-line { color: var(--text-secondary); font-size: 0.85em; min-width: 160px; }
        .run-error {
            color: var(--accent-red); font-size: 0.85em; margin: 4px 0;
        }
    </style>
</head>
<body>
    {%app_entry%}
    <footer>
        {%config%}
        {%scripts%}
        {%renderer%}
    </footer>
</body>
</html>"""


# ═══════════════════════════════════════════════════════════════════════
#  Layout
# ═══════════════════════════════════════════════════════════════════════


def _sidebar() -> html.Div:
    sections = []
    for header, names in _SECTIONS:
        children: list[Any] = [html.Div(header, className="sidebar-section-header")]
        if header == "Network":
            children.append(html.Div([
                html.Label("Measurements per node"),
                dcc.Input(id="n-measurements", type="text",
                          value=str(DEFAULT_N_MEASUREMENTS), disabled=True,
                          className="field-input", style={"width": "100%"}),
            ], className="field"))
        children.extend(_field_input(FIELDS_BY_NAME[n]) for n in names)
        sections.append(html.Div(children, className="sidebar-section"))
    return html.Div([html.H2("Positioning Simulator"), *sections], className="sidebar")


def _main_area() -> html.Div:
    return html.Div([
        html.Div([
            html.Button("Run", id="btn-run", className="primary", n_clicks=0),
            html.Button("Reset", id="btn-reset", className="danger", n_clicks=0),
            html.Div(html.Div(id="progress-fill", className="progress-fill",
                              style={"width": "0%"}), className="progress-track"),
            html.Span("Idle", id="status-line", className="status-line"),
        ], className="control-bar"),
        html.Div(id="run-message", className="run-error"),
        dcc.Checklist(
            id="display-options",
            options=[
                {"label": " Arcs", "value": "arcs"},
                {"label": " H3 cells", "value": "cells"},
                {"label": " Ellipses", "value": "ellipses"},
            ],
            value=["arcs", "cells", "ellipses"],
            inline=True,
            style={"color": "#9aa0a6"},
        ),
        dcc.Graph(id="overlay-graph", figure=overlay_figure([], []),
                  config={"displayModeBar": False}),
        dcc.Graph(id="stats-graph", figure=stats_figure(None),
                  config={"displayModeBar": False}),
        dcc.Interval(id="poll-interval", interval=POLL_INTERVAL_MS, n_intervals=0),
    ], className="main-area")


app.layout = html.Div([_sidebar(), _main_area()])


# ═══════════════════════════════════════════════════════════════════════
#  Callbacks
# ═══════════════════════════════════════════════════════════════════════

# ── CB1: Per-field validation ────────────────────────────────────────

@app.callback(
    Output({"type": "field-error", "name": ALL}, "children"),
    Input({"type": "field", "name": ALL, "part": ALL}, "value"),
    State({"type": "field", "name": ALL, "part": ALL}, "id"),
)
def show_field_errors(values, ids):
    errors: dict[str, list[str]] = {}
    for err in validate(_collect_fields(values, ids), n_measurements=DEFAULT_N_MEASUREMENTS):
        errors.setdefault(err.field, []).append(err.message)
    return [", ".join(errors.get(o["id"]["name"], [])) for o in ctx.outputs_list]


# ── CB2: Run ─────────────────────────────────────────────────────────

@app.callback(
    Output("run-message", "children", allow_duplicate=True),
    Input("btn-run", "n_clicks"),
    State({"type": "field", "name": ALL, "part": ALL}, "value"),
    State({"type": "field", "name": ALL, "part": ALL}, "id"),
    prevent_initial_call=True,
)
def start_run(n_clicks, values, ids):
    global _rendered
    try:
        config = normalize(_collect_fields(values, ids), n_measurements=DEFAULT_N_MEASUREMENTS)
    except ConfigValidationError as exc:
        logger.info("run refused: %d invalid field(s)", len(exc.errors))
        return "Fix the highlighted fields before running."
    try:
        _session.submit_run(config)
    except SimulationBusyError:
        return "A simulation is already running."
    _rendered = None
    return ""


# ── CB3: Reset ───────────────────────────────────────────────────────

@app.callback(
    Output("run-message", "children", allow_duplicate=True),
    Input("btn-reset", "n_clicks"),
    prevent_initial_call=True,
)
def reset_simulation(n_clicks):
    _session.submit_reset()
    return ""


# ── CB4: Poll driver snapshot ────────────────────────────────────────

@app.callback(
    Output("overlay-graph", "figure"),
    Output("stats-graph", "figure"),
    Output("progress-fill", "style"),
    Output("status-line", "children"),
    Output("btn-run", "disabled"),
    Output("run-message", "children"),
    Output({"type": "field", "name": ALL, "part": ALL}, "disabled"),
    Input("poll-interval", "n_intervals"),
    Input("display-options", "value"),
)
def poll_snapshot(n_intervals, display):
    global _rendered
    snap = _session.snapshot()
    display = tuple(sorted(display or []))
    locked = _form_locked(snap)

    status = _STATE_LABELS[snap.state]
    if snap.stats is not None and snap.stats.n_epochs:
        status += f" · epoch {snap.stats.n_epochs}"
    if locked and snap.state is DriverState.IDLE:
        status += " · reset to edit parameters"

    message: Any = no_update
    error = _session.last_error
    if snap.state is DriverState.IDLE and isinstance(error, EngineError):
        message = f"Simulation failed: {error}"

    if not _needs_redraw(snap.nodes, display):
        overlay_fig: Any = no_update
        stats_fig: Any = no_update
    else:
        _rendered = (snap.nodes, display)
        overlays = _builder.build(snap.nodes)
        overlay_fig = overlay_figure(
            snap.nodes, overlays,
            title=f"{len(snap.nodes)} nodes" if snap.nodes else "Simulation",
            show_arcs="arcs" in display,
            show_cells="cells" in display,
            show_ellipses="ellipses" in display,
        )
        stats_fig = stats_figure(snap.stats)

    return (
        overlay_fig, stats_fig,
        {"width": f"{snap.progress:.0f}%"},
        status,
        snap.state is not DriverState.IDLE,
        message,
        [locked] * len(ctx.outputs_list[-1]),
    )


# ═══════════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    setup_logging(LOG_LEVEL)
    app.run(host=HOST, debug=False, port=PORT)
