"""
Domain models for the daily renewal scan.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RenewalScanResult(BaseModel):
    """Outcome of one renewal scan run."""

    started_at: datetime
    skipped: bool = False  # Another scan held the lock
    scanned: int = 0
    renewed_invoice_ids: list[int] = Field(default_factory=list)
    deactivated_invoice_ids: list[int] = Field(default_factory=list)
    failed_invoice_ids: list[int] = Field(default_factory=list)
