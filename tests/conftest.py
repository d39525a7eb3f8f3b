"""Shared pytest configuration and fixtures."""

import logging
from unittest.mock import Mock

import pytest

from nakivo_exporter.services.nakivo_client import NakivoClient
from nakivo_exporter.services.nakivo_models import (
    JobGroup,
    JobGroupListing,
    JobInfo,
    JobInfoListing,
)


@pytest.fixture
def logger():
    """Create logger for tests (propagates so caplog can see records)."""
    return logging.getLogger("test")


@pytest.fixture
def client():
    """Backend client double; tests set return values per call."""
    return Mock(spec=NakivoClient)


@pytest.fixture
def job_info():
    """Job record from the reference scenario for job 9."""
    return JobInfo.model_validate({
        "id": 9,
        "name": "Daily VM backup",
        "vmCount": 3,
        "diskCount": 5,
        "sourcesSize": 1073741824,
        "lrState": "OK",
        "lrSpeed": 120,
        "lrDurationMs": 4500,
        "lrDataKb": 20480,
        "lrVmOk": 3,
        "lrVmFailed": 0,
        "lrVmStopped": 0,
        "lrCompressionRatio": 2,
    })


@pytest.fixture
def job_group():
    """Top-level job group record."""
    return JobGroup.model_validate({
        "id": 1,
        "name": "Jobs",
        "jobCountEnabled": 4,
        "vmCount": 12,
        "diskCount": 20,
        "sourcesSize": 0,
        "lrJobOk": 3,
        "lrJobFailed": 1,
        "lrJobStopped": 0,
    })


@pytest.fixture
def job_listing():
    """Build a getJobInfo listing from job records."""
    def build(*jobs):
        return JobInfoListing(children=list(jobs))
    return build


@pytest.fixture
def group_listing():
    """Build a getGroupInfo listing from group records."""
    def build(*groups):
        return JobGroupListing(children=list(groups))
    return build


@pytest.fixture
def collect_samples():
    """Run one collect() and flatten it to {(name, labels): value}."""
    def collect(collector):
        samples = {}
        for family in collector.collect():
            for sample in family.samples:
                labels = tuple(sorted(sample.labels.items()))
                samples[(sample.name, labels)] = sample.value
        return samples
    return collect
