"""
Backend package for the todo API.

This package provides a FastAPI application over a relational task store,
with Firebase-backed authentication and in-memory doubles for local runs.
"""
