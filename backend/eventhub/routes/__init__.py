# Routes package init
"""
EventHub Backend — API Routes Package
=======================================

Route Inventory:
    - auth.py:        /api/auth        (register, login, tokens, verification, reset, social)
    - users.py:       /api/users       (own profile, public profiles)
    - events.py:      /api/events      (listing, detail, host CRUD)
    - categories.py:  /api/categories
    - upload.py:      /api/upload      (event images) and /api/files (serving)
    - vendor.py:      /api/vendor      (dashboard)
    - admin.py:       /api/admin       (stats, user management, all events)
    - ai.py:          /api/ai          (event drafting, image generation)
    - health.py:      /health, /api

Design Principle:
    Routes are THIN: parse the request, check the caller's role through a
    dependency, call one service, wrap the result in Envelope. Business
    logic belongs in services.
"""
