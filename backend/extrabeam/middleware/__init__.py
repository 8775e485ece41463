# Middleware package init
"""
ExtraBeam Backend - Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Execution order (last added in create_app runs first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - Rate limiting rejects abusive clients before any other work
    - The request ID exists before the access log line is written
    - The access log sees the final status and duration
"""
