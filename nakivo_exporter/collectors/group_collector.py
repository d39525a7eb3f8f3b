"""Job group statistics collector."""

from dataclasses import dataclass
from typing import List

from .base import BaseCollector, MetricDescriptor, ScrapeError, build_fq_name


@dataclass
class JobGroupResponse:
    """Fields of the top-level job group used by the group collector."""

    job_count: int
    vm_count: int
    disk_count: int
    sources_size: int
    last_recent_ok: int
    last_recent_failed: int
    last_recent_stopped: int


class JobGroupCollector(BaseCollector):
    """Collector for the aggregate job group of the appliance."""

    subsystem = "group"

    def build_metrics(self) -> List[MetricDescriptor]:
        def metric(name: str, help: str, extract) -> MetricDescriptor:
            return MetricDescriptor(
                name=build_fq_name(self.namespace, self.subsystem, name),
                help=help,
                extract=extract,
            )

        return [
            metric(
                "jobs_total",
                "The number of enabled jobs.",
                lambda resp: resp.job_count,
            ),
            metric(
                "vms_total",
                "The number of virtual machines processed by the jobs in the group.",
                lambda resp: resp.vm_count,
            ),
            metric(
                "disks_total",
                "The number of disks processed by the jobs in the group.",
                lambda resp: resp.disk_count,
            ),
            metric(
                "last_recent_jobs_ok",
                "The number of successful jobs during the last run.",
                lambda resp: resp.last_recent_ok,
            ),
            metric(
                "last_recent_jobs_failed",
                "The number of failed jobs during the last run.",
                lambda resp: resp.last_recent_failed,
            ),
            metric(
                "last_recent_jobs_stopped",
                "The number of stopped jobs during the last run.",
                lambda resp: resp.last_recent_stopped,
            ),
        ]

    def fetch(self) -> JobGroupResponse:
        """
        Fetch the job group listing.

        Returns:
            JobGroupResponse: Fields of the single top-level group

        Raises:
            NakivoError: If the backend call fails
            ScrapeError: If the listing does not hold exactly one group
        """
        group = self.client.list_job_groups(client_time_offset=0, flat=False)

        if len(group.children) != 1:
            raise ScrapeError(f"expected one job group, got {len(group.children)}")

        stats = group.children[0]
        return JobGroupResponse(
            job_count=stats.job_count_enabled,
            vm_count=stats.vm_count,
            disk_count=stats.disk_count,
            sources_size=stats.sources_size,
            last_recent_ok=stats.lr_job_ok,
            last_recent_failed=stats.lr_job_failed,
            last_recent_stopped=stats.lr_job_stopped,
        )
