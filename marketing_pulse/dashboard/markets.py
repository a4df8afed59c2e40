"""
Market (country) attribution for campaigns.

Campaign markets are not reported by the ad platforms at campaign level, so
they are inferred from naming conventions every time a view is filtered.
The result is a best-effort heuristic: campaigns that match no market are
only visible under "All Markets".
"""

from enum import Enum
from typing import Any, Iterable, Optional


class CountryCode(str, Enum):
    """Markets selectable in the dashboard filter."""
    ALL = "all"
    IE = "IE"
    UK = "UK"


COUNTRY_OPTIONS = [
    (CountryCode.ALL, "All Markets"),
    (CountryCode.IE, "Ireland"),
    (CountryCode.UK, "United Kingdom"),
]

COUNTRY_LABELS = dict(COUNTRY_OPTIONS)

# Country names as the platforms report them in geographic breakdowns
COUNTRY_NAMES = {
    CountryCode.IE: ["Ireland", "IE"],
    CountryCode.UK: ["United Kingdom", "GB", "UK"],
}

# Shopify reports ISO codes, and the UK is GB there
SHOPIFY_COUNTRY_CODES = {
    CountryCode.IE: ["IE"],
    CountryCode.UK: ["GB", "UK"],
}

# Evaluated in order: Ireland's block is checked in full before the UK's.
IRELAND_CONTAINS = ["ireland", "ire ", "ire-", " ire", "-ire", " ie ", "-ie-"]
IRELAND_STARTS = ["ire ", "ire-"]
IRELAND_ENDS = [" ie", "-ie"]

UK_CONTAINS = ["united kingdom", " uk ", "-uk-", " uk-", "-uk ", "britain", "british"]
UK_STARTS = ["uk ", "uk-"]
UK_ENDS = [" uk", "-uk"]


def _matches(name: str, contains: list[str], starts: list[str], ends: list[str]) -> bool:
    return (
        any(p in name for p in contains)
        or any(name.startswith(p) for p in starts)
        or any(name.endswith(p) for p in ends)
    )


def parse_country_from_campaign_name(campaign_name: str) -> Optional[CountryCode]:
    """
    Detect the market of a campaign from its name.

    Returns CountryCode.IE or CountryCode.UK, or None when the name carries
    no recognised market marker. A name with both markers resolves to
    Ireland.
    """
    name_lower = (campaign_name or "").lower()

    if _matches(name_lower, IRELAND_CONTAINS, IRELAND_STARTS, IRELAND_ENDS):
        return CountryCode.IE

    if _matches(name_lower, UK_CONTAINS, UK_STARTS, UK_ENDS):
        return CountryCode.UK

    return None


def campaign_name(campaign: Any) -> str:
    """Name of a campaign mapping or record (`campaign`, then `name`)."""
    if isinstance(campaign, dict):
        return campaign.get("campaign") or campaign.get("name") or ""
    return getattr(campaign, "campaign", None) or getattr(campaign, "name", None) or ""


def filter_campaigns_by_country(campaigns: Iterable, country: CountryCode) -> list:
    """Keep the campaigns whose inferred market is `country`."""
    campaigns = list(campaigns)
    country = CountryCode(country)
    if country == CountryCode.ALL:
        return campaigns

    return [
        c for c in campaigns
        if parse_country_from_campaign_name(campaign_name(c)) == country
    ]


def filter_rows_by_country(rows: Iterable, country: CountryCode, field: str = "country") -> list:
    """Keep breakdown rows (e.g. geographic rows) reported for `country`."""
    rows = list(rows)
    country = CountryCode(country)
    if country == CountryCode.ALL:
        return rows

    names = {n.lower() for n in COUNTRY_NAMES[country]}
    kept = []
    for row in rows:
        value = row.get(field) if isinstance(row, dict) else getattr(row, field, None)
        if value and str(value).lower() in names:
            kept.append(row)
    return kept
