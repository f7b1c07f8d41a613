# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module containing GitHub webhook related types."""


from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class JobConclusion(str, Enum):
    """Conclusion of a job on GitHub.

    See :https://docs.github.com/en/rest/actions/workflow-jobs?apiVersion=2022-11-28\
#get-a-job-for-a-workflow-run

    Attributes:
        ACTION_REQUIRED: Represents additional action required on the job.
        CANCELLED: Represents a cancelled job status.
        FAILURE: Represents a failed job status.
        NEUTRAL: Represents a job status that can optionally succeed or fail.
        SKIPPED: Represents a skipped job status.
        SUCCESS: Represents a successful job status.
        TIMED_OUT: Represents a job that has timed out.
    """

    ACTION_REQUIRED = "action_required"
    CANCELLED = "cancelled"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    SKIPPED = "skipped"
    SUCCESS = "success"
    TIMED_OUT = "timed_out"


class WorkflowJobAction(str, Enum):
    """Action of a workflow_job webhook event.

    Attributes:
        QUEUED: The job has been queued and waits for a runner.
        IN_PROGRESS: A runner picked up the job.
        COMPLETED: The job has finished.
    """

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class WorkflowStep(BaseModel):
    """A single step of a workflow job.

    Attributes:
        name: The name of the step.
        number: The number GitHub assigns to the step.
        conclusion: The conclusion of the step, if it has finished.
    """

    name: Optional[str] = None
    number: Optional[int] = None
    conclusion: Optional[str] = None


class WorkflowJob(BaseModel):
    """The workflow job part of a workflow_job event.

    Attributes:
        id: Unique identifier of the job execution.
        name: The name of the job.
        labels: The runs-on labels of the job.
        workflow_name: The name of the workflow the job belongs to.
        head_branch: The branch the workflow runs on.
        conclusion: The conclusion of the job, only set once completed.
        steps: The steps of the job, in execution order.
    """

    id: int
    name: Optional[str] = None
    labels: list[str] = []
    workflow_name: Optional[str] = None
    head_branch: Optional[str] = None
    conclusion: Optional[str] = None
    steps: list[WorkflowStep] = []


class RepositoryOwner(BaseModel):
    """Owner of a repository.

    Attributes:
        login: The login of the user or organization.
    """

    login: Optional[str] = None


class Repository(BaseModel):
    """Repository of a workflow_job event.

    Attributes:
        name: The name of the repository.
        full_name: The name of the repository in the format '<owner>/<repo>'.
        owner: The owner of the repository.
    """

    name: Optional[str] = None
    full_name: Optional[str] = None
    owner: Optional[RepositoryOwner] = None


class Organization(BaseModel):
    """Organization of a workflow_job event.

    Attributes:
        login: The login of the organization.
        name: The display name of the organization.
    """

    login: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class JobIdentity:
    """Identifies a workflow job for the GitHub API.

    Attributes:
        owner: The owner of the repository.
        repo: The name of the repository.
        job_id: The id of the job.
    """

    owner: str
    repo: str
    job_id: int


class WorkflowJobEvent(BaseModel):
    """A workflow_job lifecycle notification.

    See https://docs.github.com/en/webhooks/webhook-events-and-payloads#workflow_job

    Attributes:
        action: The action of the event, e.g. "queued".
        workflow_job: The job the event is about.
        repository: The repository of the job.
        organization: The organization owning the repository, if any.
    """

    action: str
    workflow_job: WorkflowJob
    repository: Optional[Repository] = None
    organization: Optional[Organization] = None

    @classmethod
    def build_from_github(cls, payload: dict) -> "WorkflowJobEvent":
        """Build the event from a webhook payload.

        Args:
            payload: The decoded JSON body of the webhook delivery.

        Returns:
            The workflow job event.
        """
        return cls.model_validate(payload)

    @property
    def job_identity(self) -> JobIdentity | None:
        """The identity of the job on GitHub.

        Returns:
            The identity, or None if the repository or its owner is missing.
        """
        repository = self.repository
        if repository is None or not repository.name:
            return None
        if repository.owner is None or not repository.owner.login:
            return None
        return JobIdentity(
            owner=repository.owner.login, repo=repository.name, job_id=self.workflow_job.id
        )
