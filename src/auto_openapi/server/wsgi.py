"""WSGI integration: response observation and the documentation endpoints."""

import html
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from auto_openapi.routing.index import is_docs_path

if TYPE_CHECKING:
    from auto_openapi.plugin import AutoDoc

logger = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).parent.parent / "assets"
INITIALIZER_TEMPLATE = "initializer.template.js"
SPEC_URL_TOKEN = "__SPEC_URL__"


def _status_code(status: str) -> int:
    return int(status.split(" ", 1)[0])


class ObservationMiddleware:
    """Records the final status of every non-documentation request."""

    def __init__(self, app: Callable, autodoc: "AutoDoc"):
        self.app = app
        self.autodoc = autodoc

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        method = environ.get("REQUEST_METHOD", "GET").upper()
        raw_path = environ.get("PATH_INFO") or "/"
        if is_docs_path(raw_path, self.autodoc.config):
            return self.app(environ, start_response)

        started = False

        def observing_start_response(status, headers, exc_info=None):
            nonlocal started
            started = True
            pattern = self.autodoc.record(method, raw_path, _status_code(status))
            observed = self.autodoc.store.get(method, pattern)
            effective = self.autodoc.effective_codes(method, pattern)
            headers = list(headers) + [
                ("X-Observed-For", f"{method} {pattern}"),
                ("X-Observed-Codes", ",".join(str(c) for c in sorted(observed))),
                ("X-All-Codes", ",".join(str(c) for c in sorted(effective))),
            ]
            return start_response(status, headers, exc_info)

        try:
            return self.app(environ, observing_start_response)
        except Exception:
            # The server answers an unhandled error with a 500.
            if not started:
                self.autodoc.record(method, raw_path, 500)
            raise


@lru_cache(maxsize=8)
def load_template(path: Path) -> str | None:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def swagger_html(title: str, ui_base: str) -> str:
    title = html.escape(title)
    return "\n".join([
        "<!doctype html>",
        '<html><head><meta charset="utf-8"/>',
        '<meta name="viewport" content="width=device-width, initial-scale=1"/>',
        f"<title>{title}</title>",
        f'<link rel="stylesheet" href="{ui_base}/swagger-ui.css" />',
        f'<link rel="icon" type="image/png" href="{ui_base}/favicon-32x32.png" sizes="32x32" />',
        "</head><body>",
        '<div id="swagger-ui"></div>',
        f'<script src="{ui_base}/swagger-ui-bundle.js"></script>',
        f'<script src="{ui_base}/swagger-ui-standalone-preset.js"></script>',
        f'<script src="{ui_base}/swagger-initializer.js"></script>',
        "</body></html>",
        "",
    ])


class DocsApp:
    """Serves the OpenAPI document and the UI bootstrap; delegates the rest."""

    def __init__(self, autodoc: "AutoDoc", app: Callable | None = None):
        self.autodoc = autodoc
        self.app = app

    @property
    def ui_base(self) -> str:
        return self.autodoc.config.swagger_ui_path.rstrip("/")

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        cfg = self.autodoc.config
        method = environ.get("REQUEST_METHOD", "GET").upper()
        path = environ.get("PATH_INFO") or "/"

        if method == "GET":
            if path == cfg.openapi_path:
                body = json.dumps(self.autodoc.generate(), indent=2)
                return self._respond(start_response, "200 OK", body, "application/json")
            if path in (cfg.swagger_ui_path, self.ui_base + "/"):
                body = swagger_html(cfg.title, self.ui_base)
                return self._respond(start_response, "200 OK", body, "text/html; charset=utf-8")
            if path == self.ui_base + "/swagger-initializer.js":
                return self._initializer(start_response)

        if self.app is not None:
            return self.app(environ, start_response)
        return self._respond(start_response, "404 Not Found", "Not Found", "text/plain")

    def _initializer(self, start_response: Callable) -> Iterable[bytes]:
        assets = self.autodoc.config.assets_dir or ASSETS_DIR
        template_path = assets / INITIALIZER_TEMPLATE
        raw = load_template(template_path)
        if raw is None:
            logger.error("Missing resource: %s", template_path)
            return self._respond(
                start_response, "500 Internal Server Error",
                f"Missing resource: {template_path}", "text/plain",
            )
        js = raw.replace(SPEC_URL_TOKEN, self.autodoc.openapi_path)
        return self._respond(start_response, "200 OK", js, "application/javascript")

    def _respond(self, start_response: Callable, status: str, body: str, content_type: str) -> list[bytes]:
        data = body.encode("utf-8")
        start_response(status, [
            ("Content-Type", content_type),
            ("Content-Length", str(len(data))),
            ("Cache-Control", "no-store"),
        ])
        return [data]
