"""
Multi-source demo data

Three advertising platforms reporting the same concepts under different
column names (cost / spend / total_spend, clicks / link_clicks, ...). Useful
for examples, tests and load runs.
"""
from __future__ import annotations

import random
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from .models import ColumnClassification, ColumnSchema, DataSource, DataType

CAMPAIGN_NAMES = [
    "Q4 Brand Awareness",
    "Summer Sale Promo",
    "Lead Generation Campaign",
    "Product Launch 2024",
    "Holiday Special Offer",
    "Back to School Drive",
    "Black Friday Deals",
    "New Year Kickoff",
    "Spring Collection Launch",
    "Customer Retention Focus",
]

AUDIENCES = [
    "Lookalike - High Value Customers",
    "Retargeting - Website Visitors",
    "Interest Targeting - Marketing Professionals",
    "Custom Audience - Email List",
    "Broad Targeting - Demographics",
    "Behavioral - Online Shoppers",
]

GOOGLE_ADS_ID = "google_ads_demo"
FACEBOOK_ADS_ID = "facebook_ads_demo"
LINKEDIN_ADS_ID = "linkedin_ads_demo"


def _dim(name: str, display: str, dtype: DataType, description: str, samples) -> ColumnSchema:
    return ColumnSchema(name, display, dtype, ColumnClassification.DIMENSION, description, False, tuple(samples))


def _metric(name: str, display: str, description: str, samples) -> ColumnSchema:
    return ColumnSchema(name, display, DataType.NUMBER, ColumnClassification.METRIC, description, False, tuple(samples))


def date_range(days: int, end: Optional[date] = None) -> List[str]:
    """ISO dates for the `days` days ending at `end` (inclusive)"""
    end = end or date.today()
    return [(end - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def _money(value: float) -> float:
    return round(value, 2)


def google_ads_source(days: int = 30, rng: Optional[random.Random] = None, end: Optional[date] = None) -> DataSource:
    rng = rng or random.Random()
    rows = []
    for day in date_range(days, end):
        for _ in range(rng.randint(2, 4)):
            impressions = round(5000 + rng.random() * 15000)
            ctr = (2.5 + rng.random() * 2.0) / 100
            clicks = round(impressions * ctr)
            cpc = 1.50 + rng.random() * 3.00
            cost = _money(clicks * cpc)
            conversions = round(clicks * (2.0 + rng.random() * 4.0) / 100)
            rows.append({
                "date": day,
                "campaign_name": rng.choice(CAMPAIGN_NAMES),
                "ad_group": rng.choice(AUDIENCES),
                "impressions": impressions,
                "clicks": clicks,
                "cost": cost,
                "conversions": conversions,
                "revenue": _money(conversions * (60 + rng.random() * 140)),
                "ctr": round(ctr * 100, 2),
                "cpc": _money(cpc),
            })

    return DataSource(
        id=GOOGLE_ADS_ID,
        name="Google Ads Campaign Data",
        type="google_ads",
        description="Search and display campaign performance from Google Ads",
        schema=[
            _dim("date", "Date", DataType.DATE, "Campaign date", ["2024-01-01", "2024-01-02"]),
            _dim("campaign_name", "Campaign Name", DataType.STRING, "Name of the advertising campaign",
                 ["Q4 Brand Awareness", "Summer Sale Promo"]),
            _dim("ad_group", "Ad Group", DataType.STRING, "Ad group within campaign",
                 ["Lookalike - High Value", "Retargeting - Website"]),
            _metric("impressions", "Impressions", "Number of times ads were shown", [12543, 8921]),
            _metric("clicks", "Clicks", "Number of clicks on ads", [456, 234]),
            _metric("cost", "Cost", "Total cost spent on ads", [1234.56, 789.01]),
            _metric("conversions", "Conversions", "Number of conversion events", [23, 15]),
            _metric("revenue", "Revenue", "Revenue generated from conversions", [2890.45, 1567.89]),
            _metric("ctr", "CTR (%)", "Click-through rate percentage", [3.64, 2.62]),
            _metric("cpc", "CPC", "Cost per click", [2.71, 3.37]),
        ],
        rows=rows,
        last_synced=datetime.now(timezone.utc).isoformat(),
    )


def facebook_ads_source(days: int = 30, rng: Optional[random.Random] = None, end: Optional[date] = None) -> DataSource:
    rng = rng or random.Random()
    rows = []
    for day in date_range(days, end):
        for _ in range(rng.randint(2, 4)):
            imps = round(8000 + rng.random() * 20000)
            link_ctr = (1.2 + rng.random() * 1.8) / 100
            link_clicks = round(imps * link_ctr)
            spend = _money(link_clicks * (0.80 + rng.random() * 2.20))
            conv = round(link_clicks * (1.5 + rng.random() * 3.5) / 100)
            rows.append({
                "date": day,
                "campaign_name": rng.choice(CAMPAIGN_NAMES),
                "ad_set_name": rng.choice(AUDIENCES),
                "imps": imps,
                "link_clicks": link_clicks,
                "spend": spend,
                "conv": conv,
                "revenue": _money(conv * (50 + rng.random() * 150)),
                "link_ctr": round(link_ctr * 100, 2),
                "cpc": _money(spend / link_clicks) if link_clicks else 0,
                "reach": round(imps / (1.1 + rng.random() * 2.0)),
            })

    return DataSource(
        id=FACEBOOK_ADS_ID,
        name="Facebook Ads Campaign Data",
        type="facebook_ads",
        description="Social media campaign performance from Facebook Ads Manager",
        schema=[
            _dim("date", "Date", DataType.DATE, "Campaign date", ["2024-01-01", "2024-01-02"]),
            _dim("campaign_name", "Campaign Name", DataType.STRING, "Name of the Facebook campaign",
                 ["Q4 Brand Awareness", "Summer Sale Promo"]),
            _dim("ad_set_name", "Ad Set Name", DataType.STRING, "Ad set within campaign",
                 ["Lookalike - High Value", "Interest - Marketing"]),
            _metric("imps", "Impressions", "Number of times ads were shown", [15432, 12987]),
            _metric("link_clicks", "Link Clicks", "Number of clicks on ad links", [234, 187]),
            _metric("spend", "Amount Spent", "Total amount spent on ads", [567.89, 423.56]),
            _metric("conv", "Conversions", "Number of conversion events", [12, 8]),
            _metric("revenue", "Revenue", "Revenue generated from conversions", [1234.56, 890.12]),
            _metric("link_ctr", "Link CTR (%)", "Link click-through rate", [1.52, 1.44]),
            _metric("cpc", "CPC", "Cost per link click", [2.43, 2.26]),
            _metric("reach", "Reach", "Number of unique people reached", [8567, 6234]),
        ],
        rows=rows,
        last_synced=datetime.now(timezone.utc).isoformat(),
    )


def linkedin_ads_source(days: int = 30, rng: Optional[random.Random] = None, end: Optional[date] = None) -> DataSource:
    rng = rng or random.Random()
    rows = []
    for day in date_range(days, end):
        # fewer, higher-value B2B campaigns
        for _ in range(rng.randint(1, 3)):
            impressions = round(2000 + rng.random() * 8000)
            ctr = (0.8 + rng.random() * 1.2) / 100
            clicks = round(impressions * ctr)
            total_spend = _money(clicks * (3.00 + rng.random() * 6.00))
            total_conversions = round(clicks * (3.0 + rng.random() * 5.0) / 100)
            rows.append({
                "date": day,
                "campaign_name": rng.choice(CAMPAIGN_NAMES),
                "impressions": impressions,
                "clicks": clicks,
                "total_spend": total_spend,
                "total_conversions": total_conversions,
                "revenue": _money(total_conversions * (150 + rng.random() * 350)),
                "ctr": round(ctr * 100, 2),
                "avg_cpc": _money(total_spend / clicks) if clicks else 0,
            })

    return DataSource(
        id=LINKEDIN_ADS_ID,
        name="LinkedIn Ads Campaign Data",
        type="linkedin_ads",
        description="B2B campaign performance from LinkedIn Campaign Manager",
        schema=[
            _dim("date", "Date", DataType.DATE, "Campaign date", ["2024-01-01", "2024-01-02"]),
            _dim("campaign_name", "Campaign Name", DataType.STRING, "Name of the LinkedIn campaign",
                 ["Q4 Brand Awareness", "Lead Generation"]),
            _metric("impressions", "Impressions", "Number of times ads were served", [5432, 4123]),
            _metric("clicks", "Clicks", "Number of clicks on ads", [87, 65]),
            _metric("total_spend", "Total Spend", "Total amount spent on advertising", [456.78, 334.12]),
            _metric("total_conversions", "Total Conversions", "Total number of conversions", [7, 5]),
            _metric("revenue", "Revenue", "Revenue generated from conversions", [2100.00, 1750.00]),
            _metric("ctr", "CTR (%)", "Click-through rate percentage", [1.60, 1.58]),
            _metric("avg_cpc", "Avg CPC", "Average cost per click", [5.25, 5.14]),
        ],
        rows=rows,
        last_synced=datetime.now(timezone.utc).isoformat(),
    )


_GENERATORS: Dict[str, Callable[..., DataSource]] = {
    GOOGLE_ADS_ID: google_ads_source,
    FACEBOOK_ADS_ID: facebook_ads_source,
    LINKEDIN_ADS_ID: linkedin_ads_source,
}


def generate_demo_sources(days: int = 30, seed: Optional[int] = None, end: Optional[date] = None) -> List[DataSource]:
    """All three demo sources; identical output for identical (days, seed, end)"""
    rng = random.Random(seed)
    return [generator(days, rng, end) for generator in _GENERATORS.values()]


def get_demo_source(source_id: str, days: int = 30, seed: Optional[int] = None) -> Optional[DataSource]:
    generator = _GENERATORS.get(source_id)
    if generator is None:
        return None
    return generator(days, random.Random(seed))
