"""Industry theme validation for the deep analysis stage."""

from collections.abc import Iterable, Mapping

import structlog

from market_digest.llm.models import IndustryTheme


logger = structlog.get_logger()

MAX_OTHER_THEMES = 1
OTHER_TAG = "other"

# fmt: off
INDUSTRY_WHITELIST: tuple[str, ...] = (
    "AI", "人工智慧", "artificial intelligence",
    "半導體", "晶片", "semiconductor", "chip",
    "雲端", "cloud",
    "電動車", "EV", "electric vehicle",
    "生技", "biotech", "pharmaceutical",
    "軟體", "SaaS", "software",
    "資安", "cybersecurity",
    "5G", "通訊", "telecom",
    "伺服器", "資料中心", "data center", "server",
    "PCB", "printed circuit board",
    "面板", "display", "panel",
    "被動元件", "electronic components",
    "ODM", "OEM", "contract manufacturing",
    "銀行", "金融", "banking", "financial services",
    "保險", "insurance",
    "fintech", "payment",
    "石油", "天然氣", "oil", "natural gas", "energy",
    "綠能", "renewable", "solar", "wind",
    "電池", "儲能", "battery", "energy storage",
    "零售", "電商", "retail", "e-commerce",
    "食品", "food", "beverage",
    "consumer electronics",
    "製造", "manufacturing", "automation",
    "航空", "國防", "aerospace", "defense",
    "物流", "transportation", "logistics",
    "黃金", "gold", "precious metals",
    "銅", "copper", "industrial metals",
    "commodities", "agriculture",
    "房地產", "REITs", "real estate",
    "醫療", "medical devices", "healthcare",
)

INDUSTRY_BLACKLIST: tuple[str, ...] = (
    "綜藝", "演藝", "藝人", "明星", "電影", "戲劇", "偶像",
    "球賽", "運動員", "奧運", "世界盃", "NBA", "MLB",
    "音樂", "演唱會", "遊戲", "電競",
    "選舉", "政黨", "抗議",
    "旅遊", "美食", "餐廳",
    "entertainment", "celebrity", "sports", "music", "gaming",
    "election", "tourism", "restaurant",
)
# fmt: on


def validate_industry_themes(
    raw_themes: Iterable[object],
    run_id: str = "",
) -> list[IndustryTheme]:
    """Filter model-proposed industry themes.

    Blacklisted industries are dropped, whitelisted ones are accepted,
    and at most one unlisted industry is kept with the ``other`` tag.

    Args:
        raw_themes: Theme objects as decoded from the model response.
        run_id: Run identifier for logging.

    Returns:
        Accepted themes in input order.
    """
    log = logger.bind(component="llm", subcomponent="themes", run_id=run_id)
    accepted: list[IndustryTheme] = []
    other_count = 0

    for raw in raw_themes:
        if not isinstance(raw, Mapping):
            continue
        industry = str(raw.get("industry") or "").strip()
        if not industry:
            continue
        lowered = industry.lower()
        summary = str(raw.get("summary") or "")
        raw_companies = raw.get("keyCompanies")
        companies = (
            [str(c) for c in raw_companies if c] if isinstance(raw_companies, list) else []
        )

        if any(kw.lower() in lowered for kw in INDUSTRY_BLACKLIST):
            log.warning("industry_theme_rejected", industry=industry, reason="blacklist")
            continue

        if any(kw.lower() in lowered for kw in INDUSTRY_WHITELIST):
            accepted.append(
                IndustryTheme(industry=industry, summary=summary, key_companies=companies)
            )
            continue

        if other_count < MAX_OTHER_THEMES:
            other_count += 1
            accepted.append(
                IndustryTheme(
                    industry=industry,
                    summary=summary,
                    key_companies=companies,
                    validated=False,
                    tag=OTHER_TAG,
                )
            )
            log.info("industry_theme_other_allowed", industry=industry)
        else:
            log.warning("industry_theme_rejected", industry=industry, reason="other_quota")

    return accepted
