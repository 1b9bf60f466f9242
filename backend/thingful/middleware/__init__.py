# Middleware package init
"""
Thingful Backend — Middleware Package
=====================================

Cross-cutting concerns applied to requests.

App-wide Starlette middleware (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Rate Limit FIRST: reject abusive clients before any bcrypt work
    2. Request ID: correlation ID for logging and tracing
    3. Logging: method, path, status and duration with the request ID

Per-route dependency:
    basic_auth.require_auth: HTTP Basic authentication for protected routes
"""
