"""
FastAPI application layer for vistag.

Exposes the image analysis endpoint, health checks and the upload page.
"""
