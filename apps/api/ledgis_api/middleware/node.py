"""Node context middleware."""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ledgis_api.settings import get_settings
from ledgis_api.utils.metrics import http_requests

NODE_ID_HEADER = "x-ledgis-node-id"
NODE_NAME_HEADER = "x-ledgis-node-name"


class NodeContextMiddleware(BaseHTTPMiddleware):
    """Attach the calling node to the request and echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        """Process request with node context."""
        settings = get_settings()

        # No authentication: the node id is taken on trust.
        request.state.node_id = request.headers.get(NODE_ID_HEADER) or settings.default_node_id
        request.state.node_name = request.headers.get(NODE_NAME_HEADER)

        response: Response = await call_next(request)

        response.headers[NODE_ID_HEADER] = request.state.node_id
        http_requests.labels(method=request.method, status=str(response.status_code)).inc()

        return response
