"""Relay worker process: task queues, category registry and bootstrap."""
