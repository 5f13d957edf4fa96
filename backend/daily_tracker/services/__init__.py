"""
Daily Tracker Backend — Services Layer
========================================

Business rules between the routes (HTTP / WebSocket) and the store.

Service Inventory:
    - passwords:        bcrypt credential codec
    - otp:              6-digit code generation
    - email_service:    Resend API client with log-only fallback
    - session_store:    file-persisted server-side sessions
    - broadcaster:      fan-out of change events to every WebSocket client
    - auth_service:     register / login / logout / OTP recovery / mobile login
    - resource_service: job, task and note CRUD (+ task URL de-duplication)
"""
