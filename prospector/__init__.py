"""Maps Prospector - Find local businesses, score them with Gemini, track them in a CRM."""

__version__ = "0.1.0"
