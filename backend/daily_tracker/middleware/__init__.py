"""
Daily Tracker Backend — Middleware Package
============================================

Cross-cutting HTTP concerns applied to every request.

Chain (outermost first, as registered in main.create_app):
    Request → [CORS] → [Request ID] → [Access log] → [GZip] → Route handler

Request ID runs before the access log so the log line carries the id.
WebSocket traffic bypasses both (BaseHTTPMiddleware only handles HTTP).
"""
