"""Result ranking."""

import time

from ..config.settings import RankerSettings
from ..models.component import ResultProcessorBase
from ..models.results import CandidateItem

UNSCORED = -1.0
UNDATED = float("-inf")


class Ranker(ResultProcessorBase[RankerSettings]):
    """Orders enriched items for presentation.

    Criteria in descending priority: media present, relevance score, recency,
    and a fixed bonus for higher-trust sources. Python's sort is stable, so
    items that tie on every criterion keep their input order and the output
    is the same permutation on every run.
    """

    def __init__(self, name: str = "ranker", config: RankerSettings | None = None):
        super().__init__(name, config or RankerSettings())

    def rank(self, items: list[CandidateItem]) -> list[CandidateItem]:
        """Return ``items`` sorted best-first."""
        start_time = time.time()
        ranked = sorted(items, key=self.rank_key, reverse=True)
        self._record_run(len(items), len(ranked), time.time() - start_time)
        return ranked

    def rank_key(self, item: CandidateItem) -> tuple[int, float, float, float]:
        relevance = item.relevance if item.relevance is not None else UNSCORED
        recency = item.published_date.timestamp() if item.published_date else UNDATED
        return (int(item.has_media), relevance, recency, self.trust_bonus(item))

    def trust_bonus(self, item: CandidateItem) -> float:
        """Fixed bonus when any source or the item's domain is trusted."""
        if any(source in self.config.trusted_sources for source in item.sources):
            return self.config.trust_bonus

        domain = item.source_domain
        if domain:
            for trusted in self.config.trusted_domains:
                if domain == trusted or domain.endswith("." + trusted):
                    return self.config.trust_bonus

        return 0.0


def rank_items(
    items: list[CandidateItem], config: RankerSettings | None = None
) -> list[CandidateItem]:
    """Rank items with a one-off Ranker."""
    return Ranker(config=config).rank(items)
