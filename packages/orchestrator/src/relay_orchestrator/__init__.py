"""Container orchestrator delegation.

When enabled, sync-category handlers hand long-running work (replication,
normalization, dbt) to an orchestrator pod instead of running connectors
inside the worker. The pod records its progress in the keyed document store,
so a redeployed worker can reattach to a sync that outlived its launcher.
"""
