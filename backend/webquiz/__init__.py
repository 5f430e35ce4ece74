"""Application package for the web quiz engine backend.

This package exposes the service, repository and model modules used by
the FastAPI application. It is intentionally lightweight; individual
modules contain the concrete implementations and documentation.
"""
