"""Prompt templates for business discovery and prospect scoring."""

# Stage 1 of search: grounded free-text lookup against map data
SEARCH_PROMPT = (
    'Find at least 5 "{query}" in "{location_name}". '
    "List their names, exact addresses, ratings, and websites if available."
)


# Stage 2 of search: re-express the grounded text as strict JSON
FORMAT_PROMPT = """Based on the following search results:
"{grounded_text}"

Extract a list of businesses into a valid JSON Array.
Each item must match this structure exactly:
[
  {{
    "name": "Business Name",
    "address": "Full Address",
    "rating": 4.5,
    "userRatingCount": 100,
    "phone": "555-0123",
    "website": "https://example.com",
    "lat": 0.0,
    "lng": 0.0
  }}
]

Important:
1. If specific coordinates are missing, estimate them based on the address in {location_name}.
2. Ensure the output is strictly valid JSON."""


ANALYST_PROMPT = """Act as a B2B Sales Expert.
Analyze this prospect for a Digital Marketing Agency.

Data:
Name: {name}
Rating: {rating} ({user_rating_count} reviews)
Website: {website}
Address: {address}

Logic:
- No website? High score (needs web design).
- Low rating? High score (needs reputation mgmt).
- High rating + good site? Low score (bad prospect).

Return JSON with:
- score: integer suitability score (0-100)
- analysis_summary: 2 sentences max
- suggested_offer: 1 sentence sales hook"""


# Response schema for the analysis call, in the google-genai dict form
ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "score": {
            "type": "INTEGER",
            "description": "Suitability score (0-100).",
        },
        "analysis_summary": {
            "type": "STRING",
            "description": "2 sentences max analysis.",
        },
        "suggested_offer": {
            "type": "STRING",
            "description": "1 sentence sales hook.",
        },
    },
    "required": ["score", "analysis_summary", "suggested_offer"],
}
