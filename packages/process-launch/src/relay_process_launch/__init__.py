"""Connector process launching.

Two launch strategies share one capability interface (`ProcessLauncher`):
`DockerProcessLauncher` runs connectors as local containers, and
`KubePodProcessLauncher` schedules them as pods in a cluster namespace.
`select_strategy()` picks one at startup from the worker environment.

Also home to the heartbeat server: the liveness endpoint that cluster probes
and launched pods use to check the worker is alive.
"""
