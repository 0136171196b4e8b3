"""Application package for the Project Matcher backend.

The package groups the FastAPI application, its routers, the service and
repository layers and the SQLModel tables. Individual modules carry the
concrete implementations and documentation.
"""
