# Services package init
"""
Thingful Backend — Services Layer
=================================

Business logic between routes (HTTP) and the database.

Service Inventory:
    - AuthService:  Basic token decoding, the authenticator, and its default
                    collaborators (SQLAlchemy user lookup, bcrypt)
    - ThingService: Things/reviews queries, serialization, XSS sanitization

Services have no per-request state; each call receives its DB session.
"""
