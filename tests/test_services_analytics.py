from datetime import date, datetime, timedelta

import pytest

from signdesk.models.document import Document, DocumentStatus, Signer, TypedSignature
from signdesk.services.analytics import AnalyticsService

TODAY = date(2024, 3, 15)


def _document(
    document_id: str,
    status: DocumentStatus,
    uploaded_at: datetime,
    signed_at: datetime | None = None,
    signers: list[Signer] | None = None,
) -> Document:
    return Document(
        id=document_id,
        title=document_id,
        status=status,
        uploaded_at=uploaded_at,
        signed_at=signed_at,
        owner_email="owner@x.com",
        signers=signers or [],
    )


@pytest.fixture()
def documents() -> list[Document]:
    signed = TypedSignature(name="A")
    return [
        _document(
            "signed-fast",
            DocumentStatus.SIGNED,
            datetime(2024, 3, 14, 8),
            datetime(2024, 3, 14, 10),
            [Signer(email="a@x.com", signature=signed), Signer(email="b@x.com", signature=signed)],
        ),
        _document(
            "signed-slow",
            DocumentStatus.SIGNED,
            datetime(2024, 3, 10, 8),
            datetime(2024, 3, 10, 12),
            [Signer(email="a@x.com", signature=signed)],
        ),
        _document("pending", DocumentStatus.PENDING, datetime(2024, 3, 15, 9), signers=[Signer(email="c@x.com")]),
        _document("expired", DocumentStatus.EXPIRED, datetime(2023, 6, 1)),
    ]


def test_dashboard_metrics(documents: list[Document]) -> None:
    metrics = AnalyticsService(documents).get_dashboard_metrics()

    assert metrics["total"] == 4
    assert metrics["signed"] == 2
    assert metrics["pending"] == 1
    assert metrics["expired"] == 1
    assert metrics["completion_rate"] == 50
    assert metrics["average_signing_hours"] == 3
    assert metrics["awaiting_signatures"] == 1
    assert metrics["fully_signed"] == 3
    assert metrics["most_active_signers"] == [{"email": "a@x.com", "count": 2}, {"email": "b@x.com", "count": 1}]


def test_empty_collection_metrics() -> None:
    metrics = AnalyticsService([]).get_dashboard_metrics()
    assert metrics["completion_rate"] == 0
    assert metrics["average_signing_hours"] == 0
    assert metrics["most_active_signers"] == []


def test_week_timeline_buckets_by_day(documents: list[Document]) -> None:
    timeline = AnalyticsService(documents).timeline("week", today=TODAY)

    assert len(timeline) == 7
    assert timeline[-1] == {"date": "Fri", "signed": 0, "pending": 1, "expired": 0, "total": 1}
    assert timeline[-2]["signed"] == 1
    assert timeline[1]["signed"] == 1
    assert sum(point["total"] for point in timeline) == 3


def test_month_timeline_has_thirty_days(documents: list[Document]) -> None:
    timeline = AnalyticsService(documents).timeline("month", today=TODAY)
    assert len(timeline) == 30
    assert timeline[-1]["date"] == "Mar 15"
    assert timeline[0]["date"] == (TODAY - timedelta(days=29)).strftime("%b %d")


def test_year_timeline_buckets_by_month(documents: list[Document]) -> None:
    timeline = AnalyticsService(documents).timeline("year", today=TODAY)

    assert len(timeline) == 12
    assert timeline[0]["date"] == "Apr 2023"
    assert timeline[-1] == {"date": "Mar 2024", "signed": 2, "pending": 1, "expired": 0, "total": 3}
    assert timeline[2]["expired"] == 1


def test_unknown_range_is_rejected() -> None:
    with pytest.raises(ValueError):
        AnalyticsService([]).timeline("decade")
