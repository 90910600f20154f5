"""Relay workflows: one durable state machine per job category.

- SpecWorkflow, CheckConnectionWorkflow, DiscoverCatalogWorkflow: a single
  connector command each
- SyncWorkflow: replicate, persist state, then optional normalization and dbt
- ConnectionManagerWorkflow: the long-running loop that schedules a
  connection's syncs and records how each job ends
"""
