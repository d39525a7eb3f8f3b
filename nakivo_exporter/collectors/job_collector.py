"""Per-job backup statistics collector."""

from dataclasses import dataclass
from typing import List
import logging

from ..services.nakivo_client import NakivoClient
from .base import BaseCollector, MetricDescriptor, ScrapeError, build_fq_name


# Last-run states that count as a healthy job
HEALTHY_JOB_STATES = frozenset({"OK", "WAITING_DEMAND", "WAITING_SCHEDULE", "RUNNING"})

JOB_LABELS = ("id",)


def job_status_value(status: str) -> float:
    """
    Map a job's last-run state to a binary health value.

    FAILED, STOPPED and any state the exporter does not know are unhealthy.

    Args:
        status: State string reported by the appliance

    Returns:
        float: 1.0 for a healthy state, 0.0 otherwise
    """
    return 1.0 if status in HEALTHY_JOB_STATES else 0.0


@dataclass
class JobInfoResponse:
    """Fields of one job record used by the job collector."""

    vm_count: int
    disk_count: int
    sources_size: int
    last_recent_status: str
    last_recent_speed: float
    last_recent_duration_ms: int
    last_recent_data_kb: int
    last_recent_vms_ok: int
    last_recent_vms_failed: int
    last_recent_vms_stopped: int
    last_recent_compression_ratio: float


class JobCollector(BaseCollector):
    """Collector for the last-run statistics of a single backup job."""

    subsystem = "job"

    def __init__(
        self,
        client: NakivoClient,
        job_id: int,
        logger: logging.Logger,
        namespace: str = "nakivo"
    ):
        """
        Initialize job collector.

        Args:
            client: Authenticated NAKIVO client
            job_id: Numeric id of the job to report on
            logger: Logger instance
            namespace: Metric name prefix
        """
        self.job_id = job_id
        super().__init__(client, logger, namespace)

    def build_metrics(self) -> List[MetricDescriptor]:
        def metric(name: str, help: str, extract) -> MetricDescriptor:
            return MetricDescriptor(
                name=build_fq_name(self.namespace, self.subsystem, name),
                help=help,
                extract=extract,
                label_names=JOB_LABELS,
            )

        return [
            metric(
                "last_recent_status",
                "The status of the last job run.",
                lambda resp: job_status_value(resp.last_recent_status),
            ),
            metric(
                "last_recent_speed",
                "The speed of the last job run.",
                lambda resp: resp.last_recent_speed,
            ),
            metric(
                "last_recent_duration_ms",
                "The duration of the last job run.",
                lambda resp: resp.last_recent_duration_ms,
            ),
            metric(
                "last_recent_data_kb",
                "The amount of data transferred during the last job run.",
                lambda resp: resp.last_recent_data_kb,
            ),
            metric(
                "last_recent_vms_ok",
                "The amount of virtual machines successfully processed during the last job run.",
                lambda resp: resp.last_recent_vms_ok,
            ),
            metric(
                "last_recent_vms_failed",
                "The amount of virtual machines failed during the last job run.",
                lambda resp: resp.last_recent_vms_failed,
            ),
            metric(
                "last_recent_vms_stopped",
                "The amount of virtual machines stopped during the last job run.",
                lambda resp: resp.last_recent_vms_stopped,
            ),
            metric(
                "last_recent_compression_ratio",
                "The compression ratio during the last job run.",
                lambda resp: resp.last_recent_compression_ratio,
            ),
        ]

    def label_values(self) -> List[str]:
        return [str(self.job_id)]

    def fetch(self) -> JobInfoResponse:
        """
        Fetch the job record.

        Returns:
            JobInfoResponse: Fields of the single matching job

        Raises:
            NakivoError: If the backend call fails
            ScrapeError: If the appliance did not return exactly one job
        """
        jobs = self.client.fetch_job_info([self.job_id])

        # Zero records means an unknown id, several an ambiguous answer
        if len(jobs.children) != 1:
            raise ScrapeError(
                f"expected one job record for id {self.job_id}, "
                f"got {len(jobs.children)}"
            )

        stats = jobs.children[0]
        return JobInfoResponse(
            vm_count=stats.vm_count,
            disk_count=stats.disk_count,
            sources_size=stats.sources_size,
            last_recent_status=stats.lr_state,
            last_recent_speed=stats.lr_speed,
            last_recent_duration_ms=stats.lr_duration_ms,
            last_recent_data_kb=stats.lr_data_kb,
            last_recent_vms_ok=stats.lr_vm_ok,
            last_recent_vms_failed=stats.lr_vm_failed,
            last_recent_vms_stopped=stats.lr_vm_stopped,
            last_recent_compression_ratio=stats.lr_compression_ratio,
        )
