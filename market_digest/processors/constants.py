"""Keyword tables for rule-based news scoring.

Keywords made of ASCII characters match on word boundaries; anything else
(CJK terms) matches as a case-insensitive substring.
"""

from market_digest.news.models import Tier


# fmt: off
TIER_KEYWORDS: dict[Tier, tuple[str, ...]] = {
    Tier.P0: (
        # Macro policy
        "Fed", "FOMC", "CPI", "PCE", "GDP", "NFP", "非農", "央行", "升息", "降息",
        "interest rate", "rate hike", "rate cut", "quantitative", "QT", "QE",
        "recession", "衰退", "inflation", "通膨", "unemployment", "失業率",
        # Systemic events
        "default", "違約", "bankruptcy", "破產", "bailout", "紓困",
        "financial crisis", "金融危機", "systemic risk", "market crash",
        # Geopolitics
        "war", "戰爭", "conflict", "衝突", "sanctions", "制裁", "invasion", "入侵",
    ),
    Tier.P1: (
        # Earnings and guidance
        "earnings", "財報", "revenue", "EPS", "法說會", "guidance", "展望",
        "beat", "miss", "estimate", "forecast",
        # Core holdings
        "NVIDIA", "NVDA", "台積電", "TSMC", "TSM", "Apple", "AAPL",
        "Microsoft", "MSFT", "Google", "Alphabet", "GOOGL", "Amazon", "AMZN",
        "Meta", "Broadcom", "AVGO", "AMD", "Intel",
        # Industry themes
        "AI", "artificial intelligence", "人工智慧", "semiconductor", "半導體",
        "chip", "晶片", "CoWoS", "HBM", "GPU", "data center", "資料中心",
    ),
    Tier.P2: (
        # Institutional flows
        "外資", "投信", "自營商", "三大法人", "買超", "賣超",
        "institutional", "foreign", "net buy", "net sell",
        # Margin
        "融資", "融券", "margin", "short interest",
        # General market
        "美股", "台股", "大盤", "指數", "S&P", "Nasdaq", "那斯達克", "Dow",
        "漲跌", "收盤", "close", "成交量", "volume",
    ),
}

# fmt: on

# (first hit points, points per extra hit, cap)
TIER_POINTS: dict[Tier, tuple[int, int, int]] = {
    Tier.P0: (40, 5, 60),
    Tier.P1: (25, 5, 45),
    Tier.P2: (15, 3, 30),
}

BASE_SCORE = 5
BLACKLIST_SCORE = 5

# Upstream importance hint bonus
HINT_BONUS: dict[Tier, int] = {Tier.P0: 10, Tier.P1: 8, Tier.P2: 4}

# fmt: off
# Entertainment, click-bait, social politics and lifestyle
BLACKLIST_KEYWORDS: tuple[str, ...] = (
    # Entertainment and sports
    "綜藝", "演藝", "藝人", "明星", "電影", "戲劇", "偶像",
    "球賽", "選手", "運動員", "比賽", "奧運", "世界盃", "NBA", "MLB",
    "音樂", "演唱會", "歌手", "KTV", "遊戲", "電競",
    "celebrity", "box office", "concert", "Olympics", "World Cup", "esports",
    # Click-bait
    "驚爆", "獨家", "震撼", "震驚", "必看", "秘訣", "內幕", "爆料", "揭密",
    "淘金攻略", "潛力黑馬", "飆股", "神準", "必賺", "穩賺",
    "名嘴", "專家說", "大師", "算命", "風水", "命理",
    "shocking", "must-see", "you won't believe", "get rich", "horoscope",
    # Social politics
    "選舉", "投票", "候選人", "政黨", "立委", "議員", "市長", "總統",
    "抗議", "示威", "遊行", "罷工", "陳情", "請願",
    "election campaign", "candidate", "protest",
    # Lifestyle, education and culture
    "旅遊", "觀光", "美食", "餐廳", "咖啡", "甜點",
    "學校", "大學", "考試", "升學", "補習班",
    "展覽", "博物館", "藝術", "文化節", "慶典",
    "travel", "recipe", "restaurant", "museum",
)

# fmt: on

TRUSTED_SOURCES_PRIMARY: tuple[str, ...] = ("sec-edgar", "reuters", "bloomberg", "wsj", "ft")
TRUSTED_SOURCES_SECONDARY: tuple[str, ...] = (
    "cnbc-business",
    "cnbc-investing",
    "yahoo-finance",
    "yahoo-tw",
)
PRIMARY_SOURCE_BONUS = 10
SECONDARY_SOURCE_BONUS = 5

# (max age in hours, bonus), checked in order
RECENCY_BONUSES: tuple[tuple[float, int], ...] = ((6.0, 15), (12.0, 10))

# fmt: off
GEOPOLITICS_TRIGGERS: tuple[str, ...] = (
    "war", "戰爭", "military", "軍事", "sanctions", "制裁", "nuclear", "核武",
    "Taiwan Strait", "台海", "China", "中國", "Russia", "俄羅斯",
    "Middle East", "中東", "oil supply", "石油供應", "OPEC",
)
# fmt: on
