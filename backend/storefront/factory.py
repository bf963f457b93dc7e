"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

import atexit
import logging

from flask import Flask

from storefront.core.config import BaseConfig, get_config
from storefront.core.logger import configure_logging
from storefront.core.logger import init_app as init_logging

log = logging.getLogger(__name__)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers if running behind a reverse proxy (optional module)
    from storefront.core import proxy

    proxy.init_app(app)

    from storefront.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from storefront.core import cors

    cors.init_app(app)

    from storefront.api import init_app as init_api

    init_api(app)

    from storefront.core import errors

    errors.init_app(app)

    from storefront import cli as app_cli

    app_cli.init_app(app)

    if app.config.get("SWEEP_ENABLED"):
        _start_sweep(app)

    return app


def _start_sweep(app: Flask) -> None:
    from storefront.cli.sweep import build_worker

    worker = build_worker(app)
    worker.start()
    app.extensions["sweep_worker"] = worker
    atexit.register(worker.stop)
    log.info("Background sweep enabled")
