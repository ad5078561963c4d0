"""
Travel Story Backend — API Routes Package
===========================================

Route Inventory:
    - auth.py:     POST /create-account, POST /login, GET /get-user
    - stories.py:  the authenticated travel-story routes
    - media.py:    POST /image-upload, DELETE /delete-image
    - health.py:   GET  /health

Routes handle HTTP concerns only; business rules live in the services.
"""
