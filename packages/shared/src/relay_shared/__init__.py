"""Shared infrastructure for the Relay worker.

Provides job categories and task queue names, worker settings, the runtime
context handed to every handler, error types, the Temporal client connection
factory, and the Pydantic models that cross the activity boundary.
"""
