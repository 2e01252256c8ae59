"""Analyst Agent - Scores a business as a sales prospect."""

from ..models.prospects import AIInsight, BusinessData
from .base_agent import BaseAgent


class MockAnalystAgent(BaseAgent):
    """Mock Analyst Agent for UI testing without API calls."""

    role = "Analyst"

    def execute(self, business: BusinessData, **kwargs) -> AIInsight:
        """Score with the same rules the live prompt gives the model."""
        self.report_progress(f"Scoring {business.name}...")

        score = 50
        reasons = []
        if not business.website:
            score += 30
            reasons.append("has no website")
        if 0 < business.rating < 3.5:
            score += 20
            reasons.append(f"has a low {business.rating} rating")
        if business.website and business.rating >= 4.5:
            score -= 35
            reasons.append("already has a strong site and reviews")
        score = max(0, min(100, score))

        if not business.website:
            offer = "Offer a one-page website with online booking."
        elif business.rating and business.rating < 3.5:
            offer = "Pitch a review-generation and reputation package."
        else:
            offer = "Propose a light SEO audit; low urgency."

        summary = (
            f"{business.name} {', '.join(reasons)}." if reasons
            else f"{business.name} shows an average online presence."
        )
        self.report_progress(f"Scoring complete: {score}/100")
        return AIInsight(score=score, analysis_summary=summary, suggested_offer=offer)


class AnalystAgent(BaseAgent):
    """Production Analyst Agent using Gemini structured output."""

    role = "Analyst"

    def execute(self, business: BusinessData, **kwargs) -> AIInsight:
        """Score one business; the service returns a fallback insight on failure."""
        self.report_progress(f"Analyzing {business.name}...")
        insight = self.require_gemini().analyze_prospect(business)
        self.report_progress(f"Analysis complete: {insight.score}/100")
        return insight
