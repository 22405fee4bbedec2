# Middleware package init
"""
Scholar Registry: Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so every later log line carries the ID
    - Logging measures the full handler duration and the final status
    - CORS is FastAPI's CORSMiddleware (handles browser preflight)
"""
