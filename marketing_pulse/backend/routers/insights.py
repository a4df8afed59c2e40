"""
AI insight endpoints.

Narrative analyses of the data the dashboard already holds; the caller sends
the payloads, nothing is fetched here.
"""

from fastapi import APIRouter, HTTPException

from marketing_pulse.backend.services import insights
from marketing_pulse.dashboard.metrics import currency_symbol
from marketing_pulse.schemas import (
    CampaignInsightsRequest,
    GoogleAdsInsightsRequest,
    OverviewInsightsRequest,
)

router = APIRouter()


def _respond(result: dict) -> dict:
    if "error" in result:
        raise HTTPException(status_code=result.get("status_code", 500), detail=result["error"])
    return result


@router.get("/status")
def get_status():
    """Check if insight generation is available."""
    return insights.get_insights_status()


@router.post("/overview")
def overview_insights(request: OverviewInsightsRequest):
    """Cross-channel insights for the consolidated view."""
    return _respond(insights.generate_insights(
        insights.overview_system_prompt(request.country),
        insights.build_overview_prompt(request),
    ))


@router.post("/meta-campaign")
def meta_campaign_insights(request: CampaignInsightsRequest):
    """Summary, strengths, improvements and one action for a Meta campaign."""
    return _respond(insights.generate_insights(
        insights.CAMPAIGN_SYSTEM_PROMPT,
        insights.build_campaign_prompt(request.campaign, request.country),
    ))


@router.post("/google-ads")
def google_ads_insights(request: GoogleAdsInsightsRequest):
    """Account-level Google Ads review."""
    return _respond(insights.generate_insights(
        insights.GOOGLE_ADS_SYSTEM_PROMPT.format(symbol=currency_symbol(request.country)),
        insights.build_google_ads_prompt(request.data, request.country),
    ))
