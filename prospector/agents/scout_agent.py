"""Scout Agent - Finds businesses near a location."""

import time
from typing import List

from ..models.prospects import BusinessData, Location, SearchResult
from ..models.exploration_state import DEFAULT_MAP_CENTER
from .base_agent import BaseAgent


# City centres used to place mock results; anything else lands in New York
MOCK_CITY_CENTERS = {
    "new york": (40.7128, -74.0060),
    "austin": (30.2672, -97.7431),
    "chicago": (41.8781, -87.6298),
    "los angeles": (34.0522, -118.2437),
    "london": (51.5072, -0.1276),
}

MOCK_BUSINESSES = [
    {
        "name": "Bright Smile {query}",
        "address": "120 Main St",
        "rating": 3.2,
        "userRatingCount": 18,
        "phone": "555-0101",
        "website": "",
    },
    {
        "name": "Downtown {query} Co.",
        "address": "48 Market Ave",
        "rating": 4.8,
        "userRatingCount": 412,
        "phone": "555-0102",
        "website": "https://downtown.example.com",
    },
    {
        "name": "Family {query} Group",
        "address": "9 Oak Lane",
        "rating": 4.1,
        "userRatingCount": 67,
        "phone": "",
        "website": "https://family.example.com",
    },
    {
        "name": "Northside {query}",
        "address": "300 River Rd",
        "rating": 2.7,
        "userRatingCount": 9,
        "phone": "555-0104",
        "website": "",
    },
    {
        "name": "Premier {query} Studio",
        "address": "77 Park Blvd",
        "rating": 4.5,
        "userRatingCount": 150,
        "phone": "555-0105",
        "website": "",
    },
]


class MockScoutAgent(BaseAgent):
    """Mock Scout Agent for UI testing without API calls."""

    role = "Scout"

    def execute(
        self,
        query: str = "",
        location_name: str = "",
        **kwargs
    ) -> List[SearchResult]:
        """Return five sample businesses around the requested city."""
        self.report_progress(f"Searching for {query} in {location_name}...")

        lat, lng = DEFAULT_MAP_CENTER.lat, DEFAULT_MAP_CENTER.lng
        lowered = location_name.lower()
        for city, center in MOCK_CITY_CENTERS.items():
            if city in lowered:
                lat, lng = center
                break

        stamp = int(time.time() * 1000)
        results = []
        for i, sample in enumerate(MOCK_BUSINESSES):
            results.append(SearchResult(
                id=f"search-{stamp}-{i}",
                business_data=BusinessData(
                    name=sample["name"].format(query=query.strip() or "Business"),
                    address=f"{sample['address']}, {location_name}",
                    rating=sample["rating"],
                    user_rating_count=sample["userRatingCount"],
                    phone=sample["phone"],
                    website=sample["website"],
                ),
                location=Location(lat=lat + 0.004 * (i - 2), lng=lng + 0.003 * ((i * 3) % 5 - 2)),
            ))

        self.report_progress(f"Found {len(results)} businesses")
        return results


class ScoutAgent(BaseAgent):
    """Production Scout Agent using Gemini with Maps grounding."""

    role = "Scout"

    def execute(
        self,
        query: str = "",
        location_name: str = "",
        **kwargs
    ) -> List[SearchResult]:
        """Search for businesses. Input is forwarded unvalidated."""
        self.report_progress(f"Searching for {query} in {location_name}...")
        results = self.require_gemini().search_businesses(query, location_name)
        self.report_progress(f"Found {len(results)} businesses")
        return results
