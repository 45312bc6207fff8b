"""
Country support for the shopping search engine.
"""

from typing import Optional


# Countries supported by the SerpAPI Google Shopping engine
GOOGLE_SHOPPING_COUNTRIES = frozenset({
    'ai', 'ar', 'aw', 'au', 'at', 'be', 'bm', 'br', 'io', 'ca', 'ky', 'cl',
    'cx', 'cc', 'co', 'cz', 'dk', 'fk', 'fi', 'fr', 'gf', 'pf', 'tf', 'de',
    'gr', 'gp', 'hm', 'hk', 'hu', 'in', 'id', 'ie', 'il', 'it', 'jp', 'kr',
    'my', 'mq', 'yt', 'mx', 'ms', 'nl', 'nc', 'nz', 'nf', 'no', 'ph', 'pl',
    'pt', 're', 'ro', 'ru', 'pm', 'sa', 'sg', 'sk', 'za', 'gs', 'es', 'se',
    'ch', 'tw', 'th', 'tk', 'tr', 'tc', 'ua', 'ae', 'uk', 'gb', 'us', 'vn',
    'vg', 'wf',
})

# Interface language used for countries where it differs from the default
COUNTRY_LANGUAGES = {
    'us': 'en', 'uk': 'en', 'gb': 'en', 'au': 'en', 'ca': 'en', 'nz': 'en',
    'ie': 'en', 'in': 'en', 'sg': 'en', 'za': 'en', 'ph': 'en', 'my': 'en',
    'hk': 'en', 'bm': 'en', 'ky': 'en', 'vg': 'en', 'tc': 'en', 'ai': 'en',
    'de': 'de', 'at': 'de', 'ch': 'de',
    'es': 'es', 'mx': 'es', 'ar': 'es', 'cl': 'es', 'co': 'es',
    'it': 'it', 'pt': 'pt', 'br': 'pt', 'nl': 'nl', 'aw': 'nl',
    'be': 'fr', 'fr': 'fr',
    'dk': 'da', 'fi': 'fi', 'no': 'no', 'se': 'sv', 'pl': 'pl', 'cz': 'cs',
    'sk': 'sk', 'hu': 'hu', 'ro': 'ro', 'gr': 'el', 'tr': 'tr', 'ru': 'ru',
    'ua': 'uk', 'jp': 'ja', 'kr': 'ko', 'tw': 'zh-TW', 'th': 'th', 'vn': 'vi',
    'id': 'id', 'il': 'iw', 'sa': 'ar', 'ae': 'ar',
}


def normalize_country(country: Optional[str]) -> str:
    """Lowercase country code, defaulting to "us"."""
    if not country or not country.strip():
        return 'us'
    return country.strip().lower()


def is_shopping_supported(country: str) -> bool:
    return normalize_country(country) in GOOGLE_SHOPPING_COUNTRIES


def language_for(country: str, default: str = 'fr') -> str:
    return COUNTRY_LANGUAGES.get(normalize_country(country), default)
