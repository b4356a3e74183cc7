from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RunStats:
    """Counters for one crawl run.

    Only the orchestrator mutates an instance; every other component reports
    through return values. Derived rates are computed on demand by snapshot().
    """

    total_articles: int = 0
    successful_extractions: int = 0
    paywall_hits: int = 0
    errors: int = 0
    skipped_premium: int = 0
    identity_rotations: int = 0
    start_time: float = field(default_factory=time.time)

    def record_article(self) -> None:
        self.total_articles += 1
        self.successful_extractions += 1

    def record_paywall(self) -> None:
        self.paywall_hits += 1

    def record_skip(self) -> None:
        self.skipped_premium += 1

    def record_error(self) -> None:
        self.errors += 1

    def record_rotation(self) -> None:
        self.identity_rotations += 1

    def snapshot(self, now: Optional[float] = None) -> Dict[str, Any]:
        """Return the counters plus success/paywall rates and elapsed time."""
        now = time.time() if now is None else now
        attempted = self.successful_extractions + self.errors
        visited = attempted + self.skipped_premium
        return {
            "totalArticles": self.total_articles,
            "successfulExtractions": self.successful_extractions,
            "paywallHits": self.paywall_hits,
            "errors": self.errors,
            "skippedPremium": self.skipped_premium,
            "identityRotations": self.identity_rotations,
            "startTime": self.start_time,
            "durationSeconds": round(max(now - self.start_time, 0.0), 3),
            "successRate": round(self.successful_extractions / attempted * 100, 2) if attempted else 0.0,
            "paywallRate": round(self.paywall_hits / visited * 100, 2) if visited else 0.0,
        }
