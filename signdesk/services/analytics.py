from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable

from signdesk.models.document import Document, DocumentStatus

TIME_RANGES = ("week", "month", "year")


class AnalyticsService:
    def __init__(self, documents: Iterable[Document]) -> None:
        self.documents = list(documents)

    def status_counts(self) -> dict[str, int]:
        counts = Counter(document.status for document in self.documents)
        return {status.value: counts.get(status, 0) for status in DocumentStatus}

    def completion_rate(self) -> int:
        total = len(self.documents)
        if not total:
            return 0
        signed = sum(1 for document in self.documents if document.status == DocumentStatus.SIGNED)
        return round(signed / total * 100)

    def average_signing_hours(self, now: datetime | None = None) -> int:
        signed = [document for document in self.documents if document.status == DocumentStatus.SIGNED]
        if not signed:
            return 0
        reference = now or datetime.utcnow()
        total_hours = 0.0
        for document in signed:
            finished = document.signed_at or reference
            total_hours += (finished - document.uploaded_at).total_seconds() / 3600
        return round(total_hours / len(signed))

    def most_active_signers(self, limit: int = 5) -> list[dict[str, object]]:
        counts: Counter[str] = Counter()
        for document in self.documents:
            for signer in document.signers:
                if signer.has_signed:
                    counts[signer.email] += 1
        return [{"email": email, "count": count} for email, count in counts.most_common(limit)]

    def get_dashboard_metrics(self) -> dict[str, object]:
        counts = self.status_counts()
        awaiting = sum(1 for document in self.documents if not document.is_completed)
        return {
            "total": len(self.documents),
            "pending": counts[DocumentStatus.PENDING.value],
            "signed": counts[DocumentStatus.SIGNED.value],
            "expired": counts[DocumentStatus.EXPIRED.value],
            "awaiting_signatures": awaiting,
            "fully_signed": len(self.documents) - awaiting,
            "completion_rate": self.completion_rate(),
            "average_signing_hours": self.average_signing_hours(),
            "most_active_signers": self.most_active_signers(),
        }

    def timeline(self, time_range: str = "month", today: date | None = None) -> list[dict[str, object]]:
        """
        Per-bucket status counts, oldest bucket first.

        ``week`` and ``month`` bucket by day (7 and 30 buckets), ``year`` by
        calendar month (12 buckets). Documents are placed by upload date.
        """
        if time_range not in TIME_RANGES:
            raise ValueError(f"time_range must be one of {', '.join(TIME_RANGES)}")
        today = today or datetime.utcnow().date()

        if time_range == "year":
            keys = []
            year, month = today.year, today.month
            for _ in range(12):
                keys.append((year, month))
                month -= 1
                if month == 0:
                    year, month = year - 1, 12
            keys.reverse()

            def bucket_of(document: Document) -> object:
                return (document.uploaded_at.year, document.uploaded_at.month)

            labels = {key: date(key[0], key[1], 1).strftime("%b %Y") for key in keys}
        else:
            days = 7 if time_range == "week" else 30
            keys = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

            def bucket_of(document: Document) -> object:
                return document.uploaded_at.date()

            label_format = "%a" if time_range == "week" else "%b %d"
            labels = {key: key.strftime(label_format) for key in keys}

        buckets: dict[object, Counter] = {key: Counter() for key in keys}
        for document in self.documents:
            key = bucket_of(document)
            if key in buckets:
                buckets[key][document.status] += 1

        series = []
        for key in keys:
            counts = buckets[key]
            signed = counts.get(DocumentStatus.SIGNED, 0)
            pending = counts.get(DocumentStatus.PENDING, 0)
            expired = counts.get(DocumentStatus.EXPIRED, 0)
            series.append(
                {
                    "date": labels[key],
                    "signed": signed,
                    "pending": pending,
                    "expired": expired,
                    "total": signed + pending + expired,
                }
            )
        return series
