# Routes package init
"""
Scholar Registry: API Routes Package
=====================================

Route Inventory:
    - records.py: /record/... scholar CRUD and sponsor lookups
    - files.py:   GET /files/{path} (images from the local blob backend)
    - health.py:  GET /health

Routes stay thin: read the request, call a service, return its result.
"""
