"""
Daily Tracker Backend — Application Package
=============================================

What:  Session-authenticated jobs / tasks / notes service with real-time
       fan-out to every connected device.
Who:   Imported by uvicorn (`daily_tracker.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (HTTP + WebSocket)       │  ← status codes, cookies, headers
    ├─────────────────────────────────────┤
    │   Services (auth, resources, OTP,   │  ← business rules, broadcasts
    │   sessions, email, broadcaster)     │
    ├─────────────────────────────────────┤
    │   Storage (durable → memory)        │  ← FallbackStore over two backends
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
