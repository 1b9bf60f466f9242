# Routes package init
"""
Thingful Backend — API Routes Package
=====================================

Route Inventory:
    - things.py:   GET  /api/things                      (public)
                   GET  /api/things/{id}                 (Basic auth)
                   GET  /api/things/{id}/reviews         (Basic auth)
    - reviews.py:  POST /api/reviews                     (Basic auth)
                   GET  /api/reviews/{id}                (Basic auth)
    - health.py:   GET  /health                          (public)

Routes are thin: they declare access (Depends(require_auth)) and delegate
to services.
"""
