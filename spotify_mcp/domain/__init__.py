"""Domain services: recommendation pipeline and library views."""

from .library import LibraryService
from .recommendation import NotFoundReason, Recommendation, RecommendationResolver

__all__ = ["LibraryService", "NotFoundReason", "Recommendation", "RecommendationResolver"]
