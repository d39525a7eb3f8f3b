"""Pydantic models for NAKIVO Direct API payloads."""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class NakivoModel(BaseModel):
    """Base for payload models: camelCase keys, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore"
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """The appliance sends null for jobs that never ran; fall back to defaults."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class JobInfo(NakivoModel):
    """Summary of a single job as returned by getJobInfo."""
    id: int = 0
    name: str = ""
    vm_count: int = 0
    disk_count: int = 0
    sources_size: int = 0
    lr_state: str = ""
    lr_speed: float = 0
    lr_duration_ms: int = 0
    lr_data_kb: int = 0
    lr_vm_ok: int = 0
    lr_vm_failed: int = 0
    lr_vm_stopped: int = 0
    lr_compression_ratio: float = 0


class JobInfoListing(NakivoModel):
    children: List[JobInfo] = []


class JobGroup(NakivoModel):
    """Aggregate job group as returned by getGroupInfo."""
    id: int = 0
    name: str = ""
    job_count_enabled: int = 0
    vm_count: int = 0
    disk_count: int = 0
    sources_size: int = 0
    lr_job_ok: int = 0
    lr_job_failed: int = 0
    lr_job_stopped: int = 0


class JobGroupListing(NakivoModel):
    children: List[JobGroup] = []
