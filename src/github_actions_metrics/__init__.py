# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Prometheus metrics for GitHub Actions workflow jobs."""
