"""
Recommenders decide why an item is recommended and how confident we are

The default is a static placeholder; a learned ranking can replace it by
implementing IRecommender without changes to DiscoveryService.
"""
from abc import ABC, abstractmethod
from typing import List, Tuple

from ..config import settings
from ..schemas import Recommendation, SearchResult


class IRecommender(ABC):
    """Recommendation policy interface"""

    @abstractmethod
    def recommend(self, item: SearchResult) -> Tuple[str, float]:
        """Return (reason, confidence) for an item, confidence in [0, 1]"""
        pass


class StaticRecommender(IRecommender):
    """Same reason and confidence for every item"""

    def __init__(
        self,
        reason: str = settings.RECOMMENDATION_REASON,
        confidence: float = settings.RECOMMENDATION_CONFIDENCE,
    ):
        self.reason = reason
        self.confidence = confidence

    def recommend(self, item: SearchResult) -> Tuple[str, float]:
        return self.reason, self.confidence


def wrap_recommendations(items: List[SearchResult], recommender: IRecommender) -> List[Recommendation]:
    """Attach a reason and confidence to each candidate item"""
    recommendations = []
    for item in items:
        reason, confidence = recommender.recommend(item)
        recommendations.append(Recommendation(
            id=item.id,
            content=item,
            reason=reason,
            confidence=confidence,
        ))
    return recommendations
