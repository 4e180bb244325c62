"""
FastAPI dependencies injected into the route handlers.
"""
