from __future__ import annotations

import logging

from invtrack.application.container import build_container
from invtrack.config import get_app_paths, load_settings
from invtrack.logging_config import setup_logging
from invtrack.web.app import create_app

log = logging.getLogger(__name__)


def build_app():
    paths = get_app_paths()
    settings = load_settings(paths)
    setup_logging(settings.logs_dir, level=logging.INFO)

    container = build_container(
        settings.db_path,
        session_ttl_hours=settings.session_ttl_hours,
        pool_size=settings.db_pool_size,
        pool_timeout=settings.db_pool_timeout,
    )
    app = create_app(container, secret_key=settings.secret_key, session_ttl_hours=settings.session_ttl_hours)
    return app, settings


def main() -> None:
    app, settings = build_app()
    log.info("server_starting host=%s port=%s db=%s", settings.host, settings.port, settings.db_path)
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
