"""Connector job handlers: the activities each task queue executes.

Handlers are plain objects constructed once at startup with everything they
need (runtime context, launch strategy, collaborators, and for sync handlers
the optional orchestrator handle). Their `activities()` lists the bound
`@activity.defn` methods a task queue registers.
"""
