"""Document store key layout for delegated jobs.

Keys are `<job_id>/<attempt_id>/<application>/<document>`, relative to the
store's prefix. Both the worker and the orchestrator pods compute keys with
these functions, so the layout is as much a compatibility contract as the
prefix itself. Key functions are pure: they never touch the store.
"""


def application_key(job_id: str, attempt_id: int, application: str) -> str:
    """Root of everything one delegated application writes for an attempt."""
    return f"{job_id}/{attempt_id}/{application}"


def status_key(job_id: str, attempt_id: int, application: str) -> str:
    """Current JobStatus, written by the worker first and the pod thereafter."""
    return f"{application_key(job_id, attempt_id, application)}/status"


def input_key(job_id: str, attempt_id: int, application: str) -> str:
    """Serialized input model the pod reads on startup."""
    return f"{application_key(job_id, attempt_id, application)}/input"


def output_key(job_id: str, attempt_id: int, application: str) -> str:
    """Serialized output model, present once the pod has succeeded."""
    return f"{application_key(job_id, attempt_id, application)}/output"


def state_key(job_id: str, attempt_id: int, application: str) -> str:
    """Last state checkpoint the pod committed, updated as the sync progresses."""
    return f"{application_key(job_id, attempt_id, application)}/state"
