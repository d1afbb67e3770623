from __future__ import annotations

from pydantic import BaseModel, Field


class IntentCount(BaseModel):
    intent: str
    count: int


class DailyMetrics(BaseModel):
    total_calls: int = 0
    unique_users: int = 0
    successful_connections: int = 0
    average_call_duration: float = 0.0
    top_intents: list[IntentCount] = Field(default_factory=list)
    language_distribution: dict[str, int] = Field(default_factory=dict)
    category_distribution: dict[str, int] = Field(default_factory=dict)
    user_categories: dict[str, int] = Field(default_factory=dict)


class DailyAnalytics(BaseModel):
    date: str  # YYYY-MM-DD
    metrics: DailyMetrics = Field(default_factory=DailyMetrics)
