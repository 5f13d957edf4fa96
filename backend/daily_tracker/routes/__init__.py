"""
Daily Tracker Backend — API Routes Package
============================================

Route Inventory:
    - auth.py:      /api/auth/*            (register, login, logout, check, me,
                                            forgot-password, mobile-login,
                                            change-password)
    - jobs.py:      /api/jobs[/{id}]       GET / POST / PUT / DELETE
    - tasks.py:     /api/tasks[/{id}]      GET / POST / PUT / PATCH / DELETE
    - notes.py:     /api/notes[/{id}]      GET / POST / PATCH / DELETE
    - health.py:    GET /health
    - realtime.py:  WebSocket at settings.ws_path (default /ws)

Routes stay thin: parse the payload, resolve the session, call a service,
shape the response. Components are read from `request.app.state` through
the helpers in dependencies.py.
"""
