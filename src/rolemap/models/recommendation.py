"""Coverage, recommendation and analysis result models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .grant import LegacyGrant

NO_MATCH = "No Match"


class CoverageResult(BaseModel):
    """Covered (required and granted) and excess (granted, not required) actions."""

    covered: list[str] = []
    excess: list[str] = []


class RoleBreakdown(BaseModel):
    role_name: str
    covered: list[str] = []
    excess: list[str] = []


class SearchStats(BaseModel):
    """Diagnostics from one search run."""

    mode: str = "exhaustive"
    candidate_roles: int = 0
    useful_roles: int = 0
    max_combination_size: int = 0
    capped: bool = False
    evaluated: int = 0


class Recommendation(BaseModel):
    strategy: str
    role_name: str = NO_MATCH
    role_names: list[str] = []
    confidence: int = 0
    reasoning: str = ""
    score: Optional[float] = None
    covered_permissions: list[str] = []
    missing_permissions: list[str] = []
    excess_permissions: list[str] = []
    role_breakdown: list[RoleBreakdown] = []
    stats: SearchStats = SearchStats()

    @property
    def is_match(self) -> bool:
        return bool(self.role_names)


class ExistingCoverageResult(BaseModel):
    is_fully_covered: bool
    covered_permissions: list[str] = []
    missing_permissions: list[str] = []
    excess_permissions: list[str] = []
    role_matches: list[RoleBreakdown] = []


class GrantAnalysis(BaseModel):
    """All recommendations for one legacy grant, one per strategy."""

    grant: LegacyGrant
    required_actions: list[str] = []
    recommendations: list[Recommendation] = []
    existing_coverage: Optional[ExistingCoverageResult] = None

    def recommendation_for(self, strategy: str) -> Optional[Recommendation]:
        wanted = strategy.lower()
        return next((r for r in self.recommendations if r.strategy.lower() == wanted), None)

    def selected(self, strategy: Optional[str] = None) -> Recommendation:
        """The recommendation for `strategy`, falling back to the first one."""
        if strategy:
            rec = self.recommendation_for(strategy)
            if rec is not None:
                return rec
        return self.recommendations[0]
