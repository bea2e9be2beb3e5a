"""Hugging Face Spaces entry point."""

from positioning_sim.config import HOST, LOG_LEVEL, PORT
from positioning_sim.logging_config import setup_logging
from positioning_sim.visualization.dash_app import app

server = app.server  # expose Flask server for gunicorn fallback

if __name__ == "__main__":
    setup_logging(LOG_LEVEL)
    app.run(host=HOST, debug=False, port=PORT)
