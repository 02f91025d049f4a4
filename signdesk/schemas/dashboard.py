from typing import List

from pydantic import BaseModel


class ActiveSigner(BaseModel):
    email: str
    count: int


class DashboardMetrics(BaseModel):
    total: int
    pending: int
    signed: int
    expired: int
    awaiting_signatures: int
    fully_signed: int
    completion_rate: int
    average_signing_hours: int
    most_active_signers: List[ActiveSigner]


class TimelinePoint(BaseModel):
    date: str
    signed: int
    pending: int
    expired: int
    total: int
