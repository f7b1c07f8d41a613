#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Label names and the label set built from a workflow job event."""

from github_actions_metrics.types_.github import WorkflowJobEvent

RUNS_ON = "runs_on"
JOB_NAME = "job_name"
REPOSITORY = "repository"
REPOSITORY_FULL_NAME = "repository_full_name"
OWNER = "owner"
ORGANIZATION = "organization"
WORKFLOW_NAME = "workflow_name"
HEAD_BRANCH = "head_branch"

JOB_CONCLUSION = "job_conclusion"
FAILED_STEP = "failed_step"
EXIT_CODE = "exit_code"

JOB_ID = "job_id"

# Every observation carries all of these, so series aggregate across jobs.
WORKFLOW_JOB_LABELS = (
    RUNS_ON,
    JOB_NAME,
    REPOSITORY,
    REPOSITORY_FULL_NAME,
    OWNER,
    ORGANIZATION,
    WORKFLOW_NAME,
    HEAD_BRANCH,
)

Labels = dict[str, str]


def build_labels(event: WorkflowJobEvent) -> tuple[Labels, dict[str, str]]:
    """Build the metric labels and the logging context of a workflow job event.

    Missing fields of the event are mapped to an empty label value. The logging context only
    contains the fields present in the event.

    Args:
        event: The workflow job event.

    Returns:
        The label set and the logging context.
    """
    job = event.workflow_job
    labels: Labels = {name: "" for name in WORKFLOW_JOB_LABELS}
    log_fields = {JOB_ID: str(job.id)}

    labels[RUNS_ON] = ",".join(job.labels)
    _set(labels, log_fields, JOB_NAME, job.name)

    repository = event.repository
    if repository is not None:
        _set(labels, log_fields, REPOSITORY, repository.name)
        _set(labels, log_fields, REPOSITORY_FULL_NAME, repository.full_name)
        if repository.owner is not None:
            _set(labels, log_fields, OWNER, repository.owner.login)

    if event.organization is not None:
        _set(labels, log_fields, ORGANIZATION, event.organization.name)

    _set(labels, log_fields, WORKFLOW_NAME, job.workflow_name)
    _set(labels, log_fields, HEAD_BRANCH, job.head_branch)
    return labels, log_fields


def _set(labels: Labels, log_fields: dict[str, str], name: str, value: str | None) -> None:
    if value is None:
        return
    labels[name] = value
    log_fields[name] = value


def extra_label(labels: Labels, name: str, value: str) -> Labels:
    """Copy the labels with one more label added.

    Args:
        labels: The labels to copy.
        name: The name of the added label.
        value: The value of the added label.

    Returns:
        A new label set, the input is left untouched.
    """
    extended = dict(labels)
    extended[name] = value
    return extended


def format_log_fields(log_fields: dict[str, str]) -> str:
    """Render the logging context as key=value pairs.

    Args:
        log_fields: The logging context.

    Returns:
        The rendered context.
    """
    return " ".join(f"{name}={value!r}" for name, value in log_fields.items())
