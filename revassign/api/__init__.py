"""HTTP API: request routing and threaded server."""

from revassign.api.handlers import ROUTES, dispatch
from revassign.api.server import make_server, run_server

__all__ = ["ROUTES", "dispatch", "make_server", "run_server"]
