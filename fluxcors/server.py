"""
flux-cors HTTP server adapter (standard library http.server).

Every request method is routed through ``Cors.handler(app)``; the
collected Response (status, headers, body) is then written back.

Usage:
    from fluxcors.server import run_server
    run_server(port=8080)          # defaults from get_config()
"""

import json
import http.server
from typing import Callable, Optional

from fluxcors.config import get_config, options_from_config
from fluxcors.cors import Cors, Handler
from fluxcors.logging_config import get_logger, setup_logging
from fluxcors.messages import Request, Response

logger = get_logger("server")


def json_app(request: Request, response: Response) -> None:
    """Minimal downstream handler: JSON status body"""
    body = json.dumps({"status": "ok", "method": request.method, "path": request.path}).encode("utf-8")
    response.headers["Content-Type"] = "application/json; charset=utf-8"
    response.write(body)


class CORSRequestHandler(http.server.BaseHTTPRequestHandler):
    """Request handler applying ``cors`` before ``app``"""

    server_version = "flux-cors/1.0"
    sys_version = ""

    cors: Optional[Cors] = None
    app: Handler = staticmethod(json_app)

    def _dispatch(self):
        request = Request.from_http_handler(self)
        response = Response()
        cors = self.cors if self.cors is not None else Cors()
        cors.handler(self.app)(request, response)
        self._send(response)

    def _send(self, response: Response):
        """Write the collected response (200 when nothing set a status)"""
        body = bytes(response.body)
        self.send_response(response.status or 200)
        for name, value in response.headers.items():
            self.send_header(name, value)
        if response.headers.get("Content-Length") is None:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body and self.command != "HEAD":
            self.wfile.write(body)

    do_GET = _dispatch
    do_HEAD = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_PATCH = _dispatch
    do_DELETE = _dispatch
    do_OPTIONS = _dispatch

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)


def make_handler_class(cors: Cors, app: Optional[Callable] = None) -> type:
    """Bind a Cors instance and downstream app into a handler class"""
    attrs = {"cors": cors}
    if app is not None:
        attrs["app"] = staticmethod(app)
    return type("BoundCORSRequestHandler", (CORSRequestHandler,), attrs)


def make_server(host: str, port: int, cors: Cors,
                app: Optional[Callable] = None) -> http.server.ThreadingHTTPServer:
    """Create (without starting) a threading HTTP server"""
    return http.server.ThreadingHTTPServer((host, port), make_handler_class(cors, app))


def run_server(host: Optional[str] = None, port: Optional[int] = None,
               cors: Optional[Cors] = None, app: Optional[Callable] = None) -> None:
    """Serve until interrupted; unset arguments come from get_config()"""
    cfg = get_config()
    setup_logging(
        level="DEBUG" if cfg.cors_debug else cfg.log_level,
        log_format=cfg.log_format,
        log_file=cfg.log_file or None,
        max_bytes=cfg.log_max_bytes,
        backup_count=cfg.log_backup_count,
    )
    host = host or cfg.server_host
    port = cfg.server_port if port is None else port
    if cors is None:
        cors = Cors(options_from_config(cfg))

    server = make_server(host, port, cors, app)
    logger.info("Serving on http://%s:%d", host, server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()


if __name__ == "__main__":
    run_server()
