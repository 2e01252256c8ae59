"""Pydantic models for businesses, AI insights and saved prospects."""

import time
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class UserStatus(str, Enum):
    """CRM status of a saved prospect."""

    NEW = "New"
    CONTACTED = "Contacted"
    IGNORED = "Ignored"
    SIGNED = "Signed"


class BusinessData(BaseModel):
    """Business details as returned by search. Never mutated after creation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Business name")
    address: str = Field(..., description="Full street address")
    rating: float = Field(0, description="Average review rating, 0 if unknown")
    user_rating_count: int = Field(
        0,
        alias="userRatingCount",
        description="Number of reviews, 0 if unknown"
    )
    phone: str = Field("", description="Phone number")
    website: str = Field("", description="Website URL")
    google_maps_uri: str = Field(
        "",
        alias="googleMapsUri",
        description="Maps listing URL if the model supplied one"
    )


class Location(BaseModel):
    """Geographic point in degrees."""

    lat: float = Field(0.0, description="Latitude")
    lng: float = Field(0.0, description="Longitude")


class SearchResult(BaseModel):
    """Business discovered by a search, held only in view state until saved."""

    id: str = Field(..., description="Unique id assigned at search time")
    business_data: BusinessData
    location: Location = Field(default_factory=Location)


class AIInsight(BaseModel):
    """Model-generated suitability score and sales narrative for one business."""

    score: int = Field(..., ge=0, le=100, description="Suitability score from 0-100")
    analysis_summary: str = Field(..., description="Short analysis, two sentences at most")
    suggested_offer: str = Field(..., description="One-sentence sales hook")


class Prospect(BaseModel):
    """A saved business with CRM status."""

    id: str = Field(..., description="Stable id, taken from the originating search result")
    business_data: BusinessData
    location: Location = Field(default_factory=Location)
    ai_insight: Optional[AIInsight] = None
    user_status: UserStatus = UserStatus.NEW
    timestamp: int = Field(default_factory=now_ms, description="Last save time, epoch ms")

    @classmethod
    def from_search_result(
        cls,
        result: SearchResult,
        insight: Optional[AIInsight],
        now: Optional[int] = None
    ) -> "Prospect":
        """Promote a search result to a new prospect with status New."""
        return cls(
            id=result.id,
            business_data=result.business_data,
            location=result.location,
            ai_insight=insight,
            user_status=UserStatus.NEW,
            timestamp=now if now is not None else now_ms()
        )

    @property
    def score(self) -> int:
        """AI score, or 0 when the prospect was never analyzed."""
        return self.ai_insight.score if self.ai_insight else 0

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the JSON document shape shared by both stores."""
        return self.model_dump(mode="json", by_alias=True)
