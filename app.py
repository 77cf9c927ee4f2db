# app.py

import dash
import dash_bootstrap_components as dbc

from config import CONFIG
from utils.logger import get_logger

log = get_logger()

# ----------------- Initialize Dash App -----------------
app = dash.Dash(
    __name__,
    use_pages=True,  # pages/roster.py registers itself at "/"
    external_stylesheets=[dbc.themes.BOOTSTRAP],
    suppress_callback_exceptions=True
)
app.title = CONFIG.APP_TITLE

# ----------------- Layout -----------------
app.layout = dbc.Container([
    dbc.NavbarSimple(
        children=[dbc.NavItem(dbc.NavLink("🏆 Rank List", href="/"))],
        brand=f"📊 {CONFIG.APP_TITLE}",
        color="primary",
        dark=True,
        className="mt-3 mb-4 rounded"
    ),

    # Dynamic page container
    dash.page_container
], fluid=True)

# ----------------- Server for Deployment -----------------
server = app.server


def main():
    log.info("Starting %s on %s:%s", CONFIG.APP_TITLE, CONFIG.HOST, CONFIG.PORT)
    app.run(host=CONFIG.HOST, port=CONFIG.PORT, debug=CONFIG.DEBUG)


# ----------------- Run App -----------------
if __name__ == '__main__':
    main()
