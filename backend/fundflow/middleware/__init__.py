# Middleware package init
"""
FundFlow Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs before Logging so the access line carries the id; the
    id header is added on the way out.
"""
