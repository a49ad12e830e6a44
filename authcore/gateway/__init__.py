"""
AuthCore - HTTP Gateway

Middleware and error handlers shared by all routes.
"""
