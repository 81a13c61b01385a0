# Overview: Flask API routes for the change streams; Server-Sent Events over the in-process change feed.

"""
GET /api/realtime/orders
GET /api/realtime/bar_to_bar_transfers

Each committed insert or status update is sent as

    event: INSERT | UPDATE
    data: {"table": ..., "type": ..., "new": {...}, "old": {...} | null}

A comment line is sent when the stream has been idle for
REALTIME_KEEPALIVE_SECONDS. Optional ?limit=N closes the stream after N
events.
"""

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from ..decorators import require_auth
from ..extensions import change_feed
from ..services.realtime_service import STREAMED_TABLES


realtime_bp = Blueprint("realtime", __name__, url_prefix="/api/realtime")


def format_sse(change) -> str:
    return f"event: {change.type}\ndata: {change.to_json()}\n\n"


@realtime_bp.get("/<table>")
@require_auth
def stream_route(table: str):
    if table not in STREAMED_TABLES:
        return jsonify({"error": f"Unknown change stream: {table}"}), 404

    limit = request.args.get("limit", type=int)
    keepalive = current_app.config.get("REALTIME_KEEPALIVE_SECONDS", 15)
    logger = current_app.logger

    def event_stream():
        subscription = change_feed.subscribe(table)
        sent = 0
        try:
            yield ": connected\n\n"
            while limit is None or sent < limit:
                change = subscription.get(timeout=keepalive)
                if change is None:
                    if subscription.closed:
                        break
                    yield ": keepalive\n\n"
                    continue
                yield format_sse(change)
                sent += 1
        finally:
            subscription.close()
            logger.debug("Change stream %s closed after %d event(s)", table, sent)

    return Response(
        stream_with_context(event_stream()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
