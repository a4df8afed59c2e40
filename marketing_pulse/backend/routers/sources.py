"""
Source API endpoints.

One POST per upstream platform. Each takes a date range and answers with the
platform's payload reshaped for the dashboard: `{"data": ...}`.
"""

import logging

import requests
from fastapi import APIRouter, HTTPException

from marketing_pulse.connectors import SourceAPIError, SourceNotConfigured
from marketing_pulse.connectors.ga4 import GA4Connector
from marketing_pulse.connectors.google_ads import GoogleAdsConnector
from marketing_pulse.connectors.mailchimp import MailchimpConnector
from marketing_pulse.connectors.mailerlite import MailerLiteConnector
from marketing_pulse.connectors.meta_ads import MetaAdsConnector
from marketing_pulse.connectors.shopify import ShopifyConnector
from marketing_pulse.connectors.subbly import SubblyConnector
from marketing_pulse.schemas import DateRangeRequest

logger = logging.getLogger(__name__)

router = APIRouter()

CONNECTORS = {
    "ga4": GA4Connector,
    "google-ads": GoogleAdsConnector,
    "meta-ads": MetaAdsConnector,
    "mailerlite": MailerLiteConnector,
    "mailchimp": MailchimpConnector,
    "shopify": ShopifyConnector,
    "subbly": SubblyConnector,
}


@router.get("")
def list_sources():
    """Available source endpoints."""
    return {"sources": list(CONNECTORS)}


@router.post("/{source}")
def fetch_source(source: str, request: DateRangeRequest):
    """
    Fetch one source for the requested date range.

    Missing credentials answer 503, upstream failures 502 (429 when the
    platform rate limited us).
    """
    connector_class = CONNECTORS.get(source)
    if connector_class is None:
        raise HTTPException(status_code=404, detail=f"Unknown source: {source}")

    start_date = request.start_date.isoformat()
    end_date = request.end_date.isoformat()

    try:
        payload = connector_class().get_dashboard_data(start_date, end_date)
    except SourceNotConfigured as e:
        logger.warning("%s", e)
        raise HTTPException(status_code=503, detail=str(e))
    except SourceAPIError as e:
        logger.error("%s", e)
        status_code = 429 if e.status_code == 429 else 502
        raise HTTPException(status_code=status_code, detail=str(e))
    except requests.RequestException as e:
        logger.error("%s request failed: %s", source, e)
        raise HTTPException(status_code=502, detail=f"{source}: request failed")

    return {"data": payload.to_wire()}
