"""Data Transfer Objects for Scheduled Workers"""

from datetime import datetime
from pydantic import BaseModel, Field


class SweepResultDTO(BaseModel):
    """
    Summary of one sweep run

    Records are counted exactly once as processed, skipped or failed.
    """

    job_name: str
    total_records: int = Field(..., description="Records selected for this run")
    processed: int = Field(default=0, description="Records changed by this run")
    skipped: int = Field(
        default=0,
        description="Records already in the target state or claimed by a concurrent run"
    )
    failed: int = Field(default=0)
    started_at: datetime
    execution_time_ms: int

    class Config:
        json_schema_extra = {
            "example": {
                "job_name": "grace_period_sweep",
                "total_records": 4,
                "processed": 3,
                "skipped": 1,
                "failed": 0,
                "started_at": "2024-09-02T03:00:00",
                "execution_time_ms": 412,
            }
        }
