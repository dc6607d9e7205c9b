"""Flask app factory for the flowchart editor API."""

from __future__ import annotations

from typing import Optional

from flask import Flask
from flask_cors import CORS

from ..advisor import FlowchartAdvisor
from ..config.settings import Settings
from ..session import FlowchartSession
from ..utils.logging import configure_logging
from .routes import register_routes


def create_app(
    session: Optional[FlowchartSession] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    settings = settings or Settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    if session is None:
        session = FlowchartSession(advisor=FlowchartAdvisor(settings=settings))

    app = Flask(__name__)
    CORS(app)
    app.extensions["flowchart_session"] = session
    register_routes(app, session=session)
    return app
