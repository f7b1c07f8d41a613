# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Factories for generating test data."""

# The factory definitions don't need public methods
# pylint: disable=too-few-public-methods

import factory

from github_actions_metrics.types_.github import (
    Organization,
    Repository,
    RepositoryOwner,
    WorkflowJob,
    WorkflowJobEvent,
    WorkflowStep,
)


class WorkflowStepFactory(factory.Factory):
    """Factory for creating WorkflowStep instances."""

    class Meta:
        """Meta class for WorkflowStep.

        Attributes:
            model: The metadata reference model.
        """

        model = WorkflowStep

    name = factory.Sequence(lambda n: f"step-{n}")
    number = factory.Sequence(lambda n: n + 1)
    conclusion = "success"


class WorkflowJobFactory(factory.Factory):
    """Factory for creating WorkflowJob instances."""

    class Meta:
        """Meta class for WorkflowJob.

        Attributes:
            model: The metadata reference model.
        """

        model = WorkflowJob

    id = factory.Sequence(lambda n: 1000 + n)
    name = "build"
    labels = factory.LazyFunction(lambda: ["self-hosted", "linux"])
    workflow_name = "CI"
    head_branch = "main"
    conclusion = None
    steps = factory.LazyFunction(list)


class RepositoryOwnerFactory(factory.Factory):
    """Factory for creating RepositoryOwner instances."""

    class Meta:
        """Meta class for RepositoryOwner.

        Attributes:
            model: The metadata reference model.
        """

        model = RepositoryOwner

    login = "canonical"


class RepositoryFactory(factory.Factory):
    """Factory for creating Repository instances."""

    class Meta:
        """Meta class for Repository.

        Attributes:
            model: The metadata reference model.
        """

        model = Repository

    name = "repo"
    owner = factory.SubFactory(RepositoryOwnerFactory)
    full_name = factory.LazyAttribute(lambda obj: f"{obj.owner.login}/{obj.name}")


class OrganizationFactory(factory.Factory):
    """Factory for creating Organization instances."""

    class Meta:
        """Meta class for Organization.

        Attributes:
            model: The metadata reference model.
        """

        model = Organization

    login = "canonical"
    name = "Canonical"


class WorkflowJobEventFactory(factory.Factory):
    """Factory for creating WorkflowJobEvent instances."""

    class Meta:
        """Meta class for WorkflowJobEvent.

        Attributes:
            model: The metadata reference model.
        """

        model = WorkflowJobEvent

    action = "queued"
    workflow_job = factory.SubFactory(WorkflowJobFactory)
    repository = factory.SubFactory(RepositoryFactory)
    organization = factory.SubFactory(OrganizationFactory)
