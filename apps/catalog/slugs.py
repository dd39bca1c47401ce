import re
import unicodedata

from django.conf import settings

_NON_SLUG = re.compile(r"[^a-z0-9\s-]")
_SEPARATORS = re.compile(r"[\s-]+")


def _fold(value):
    value = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in value if not unicodedata.combining(ch))


def derive_slug(name, stopwords=None):
    """Build a URL slug from a display name.

    Stopwords are matched against the lower-cased words before accents are
    stripped, so the default ``("é",)`` drops "é" but keeps a plain "e".

    >>> derive_slug("Vaso de Cerâmica")
    'vaso-de-ceramica'
    >>> derive_slug("Pão e Queijo")
    'pao-e-queijo'
    """
    if stopwords is None:
        stopwords = getattr(settings, "SHOP_SLUG_STOPWORDS", ())
    stopwords = {unicodedata.normalize("NFC", w.lower()) for w in stopwords}
    words = _SEPARATORS.split(unicodedata.normalize("NFC", str(name or "")).lower())
    value = " ".join(w for w in words if w and w not in stopwords)
    value = _NON_SLUG.sub("", _fold(value))
    return "-".join(t for t in _SEPARATORS.split(value) if t)
