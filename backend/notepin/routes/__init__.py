# Routes package init
"""
Notepin — API Routes Package
=============================

Route Inventory:
    - posts.py:    GET/POST /api/posts, PUT/DELETE /api/posts/{id}
    - uploads.py:  GET /uploads/{name}
    - pages.py:    GET /  (read-only HTML feed)
    - health.py:   GET /health

Routes stay thin: read the request, call PostService, shape the response.
"""
