# price_compare/filters/identity_matcher.py

"""Confidence scoring: does a quote describe the same physical product?

Tiers are checked in priority order and the first one that applies
wins, so an exact identifier can never be diluted by a weak fuzzy score
and a short identifier can never produce a false exact match.

1. UPC / EAN / GTIN (8+ chars) as a whole title token ......... 100
2. ASIN / eBay item id as a whole token of the quote's own link  100
3. Model number and brand both known:
     both in title, specs agree ............................... 95
     both in title, no comparable specs ....................... 90
     both in title, a spec disagrees .......................... 60
     only one in title ........................................ 75
4. Fuzzy similarity of "brand model" against the title ...... 0-80
"""

import logging
import re
from collections.abc import Mapping

from rapidfuzz import fuzz

from price_compare.models.product import ProductIdentifiers
from price_compare.models.quote import ScoredQuote, SourceQuote

logger = logging.getLogger("price_compare.matcher")

EXACT_MATCH = 100
SPEC_CONFIRMED_MATCH = 95
MODEL_BRAND_MATCH = 90
PARTIAL_MATCH = 75
VARIANT_MISMATCH = 60
FUZZY_CEILING = 80

MIN_BARCODE_LENGTH = 8

_FUZZY_WEIGHT = 0.6
_KEYWORD_WEIGHT = 0.4

_TOKEN_SPLIT_RE = re.compile(r"[^0-9A-Za-z]+")
_WHITESPACE_RE = re.compile(r"\s+")

STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "and", "the", "for", "with", "of", "in", "on", "to",
    "by", "from", "new", "brand", "original", "genuine", "edition",
    "version", "pack", "set", "-", "&",
})

# Marketplace identifier field -> site name it is unique within.
_MARKETPLACE_IDS: tuple[tuple[str, str], ...] = (
    ("asin", "amazon"),
    ("ebay_item_id", "ebay"),
)

_STORAGE_RE = re.compile(r"\b(\d+)\s?(gb|tb)\b", re.IGNORECASE)
_SCREEN_RE = re.compile(
    r"\b(\d+(?:\.\d+)?)\s?(?:\"|-?inch(?:es)?\b)", re.IGNORECASE
)
_COLOURS: tuple[str, ...] = (
    "black", "white", "silver", "gold", "grey", "gray", "blue", "red",
    "green", "pink", "purple", "yellow", "orange", "graphite",
    "midnight", "starlight", "rose gold", "space gray", "space grey",
)


def _tokens(text: str) -> set[str]:
    """Split on non-alphanumeric boundaries, lower-cased."""
    return {t for t in _TOKEN_SPLIT_RE.split(text.lower()) if t}


def _squash(value: str) -> str:
    """Lower-case and drop all whitespace for spec comparison."""
    return _WHITESPACE_RE.sub("", value.lower())


def _keywords(text: str) -> set[str]:
    return {t for t in _tokens(text) if t not in STOP_WORDS}


def title_specifications(title: str) -> dict[str, str]:
    """Pull the variant attributes a listing title usually carries."""
    specs: dict[str, str] = {}
    storage = _STORAGE_RE.search(title)
    if storage:
        specs["storage"] = f"{storage.group(1)}{storage.group(2)}"
    screen = _SCREEN_RE.search(title)
    if screen:
        specs["size"] = f"{screen.group(1)}inch"
    lowered = title.lower()
    # Longest names first so "rose gold" wins over "gold".
    for colour in sorted(_COLOURS, key=len, reverse=True):
        if re.search(rf"\b{re.escape(colour)}\b", lowered):
            specs["color"] = colour
            break
    return specs


def _normalise_spec_key(key: str) -> str:
    key = key.strip().lower()
    if key in ("colour", "color"):
        return "color"
    if key in ("capacity", "storage", "memory", "rom"):
        return "storage"
    if key in ("screen", "screen_size", "display", "size"):
        return "size"
    return key


def _normalise_spec_value(key: str, value: str) -> str:
    squashed = _squash(value)
    if key == "size":
        squashed = re.sub(r'(\"|inches|inch|in)$', "", squashed) + "inch"
    return squashed


_COMPOUND_COLOURS: tuple[str, ...] = ("rose gold", "space gray")


def _colour_words(value: str) -> set[str]:
    """Colour name as a word set, compound colours kept whole."""
    text = " ".join(value.lower().replace("grey", "gray").split())
    for compound in _COMPOUND_COLOURS:
        text = re.sub(rf"\b{compound}\b", compound.replace(" ", ""), text)
    return _tokens(text)


def _colours_agree(wanted: str, offered: str) -> bool:
    mine = _colour_words(wanted)
    theirs = _colour_words(offered)
    if not mine or not theirs:
        return mine == theirs
    return mine <= theirs or theirs <= mine


def compare_specifications(
    wanted: Mapping[str, str], quote: SourceQuote,
) -> tuple[int, int]:
    """Return ``(checked, conflicts)`` over specs both sides supply."""
    offered = quote.specifications or title_specifications(quote.title)
    offered_norm = {
        _normalise_spec_key(k): v for k, v in offered.items()
    }
    checked = 0
    conflicts = 0
    for raw_key, value in wanted.items():
        key = _normalise_spec_key(raw_key)
        if key not in offered_norm:
            continue
        checked += 1
        if key == "color":
            # "midnight black" and "black" name the same finish
            agrees = _colours_agree(value, offered_norm[key])
        else:
            agrees = _normalise_spec_value(key, value) == _normalise_spec_value(
                key, offered_norm[key]
            )
        if not agrees:
            conflicts += 1
    return checked, conflicts


def _exact_barcode(identifiers: ProductIdentifiers, title: str) -> bool:
    title_tokens = _tokens(title)
    for code in (identifiers.upc, identifiers.ean, identifiers.gtin):
        if not code:
            continue
        cleaned = code.strip().lower()
        if len(cleaned) >= MIN_BARCODE_LENGTH and cleaned in title_tokens:
            return True
    return False


def _marketplace_id(identifiers: ProductIdentifiers, quote: SourceQuote) -> bool:
    site = quote.site.lower()
    link_tokens = _tokens(quote.url)
    for field_name, marketplace in _MARKETPLACE_IDS:
        value = getattr(identifiers, field_name)
        if value and marketplace in site and value.lower() in link_tokens:
            return True
    return False


def _model_brand(
    identifiers: ProductIdentifiers, quote: SourceQuote,
) -> int | None:
    model = identifiers.model_text()
    brand = identifiers.brand
    if not (model and brand):
        return None

    title = quote.title.lower()
    model_hit = model.lower() in title
    brand_hit = brand.lower() in title

    if model_hit and brand_hit:
        if not identifiers.specifications:
            return MODEL_BRAND_MATCH
        checked, conflicts = compare_specifications(
            identifiers.specifications, quote
        )
        if conflicts:
            return VARIANT_MISMATCH
        return SPEC_CONFIRMED_MATCH if checked else MODEL_BRAND_MATCH
    if model_hit or brand_hit:
        return PARTIAL_MATCH
    return None


def fuzzy_score(identifiers: ProductIdentifiers, title: str) -> int:
    """Blend edit-distance similarity with keyword overlap, 0..80."""
    reference = " ".join(
        part for part in (identifiers.brand, identifiers.model_text()) if part
    ).strip()
    if not reference or not title.strip():
        return 0

    similarity = fuzz.ratio(reference.lower(), title.lower()) / 100.0

    wanted = _keywords(reference)
    overlap = (
        len(wanted & _keywords(title)) / len(wanted) if wanted else 0.0
    )

    blended = _FUZZY_WEIGHT * similarity + _KEYWORD_WEIGHT * overlap
    return max(0, min(FUZZY_CEILING, round(blended * FUZZY_CEILING)))


def score(identifiers: ProductIdentifiers, quote: SourceQuote) -> int:
    """Confidence (0-100) that *quote* is the product *identifiers* name."""
    if _exact_barcode(identifiers, quote.title):
        return EXACT_MATCH
    if _marketplace_id(identifiers, quote):
        return EXACT_MATCH

    tiered = _model_brand(identifiers, quote)
    if tiered is not None:
        return tiered

    return fuzzy_score(identifiers, quote.title)


def score_quote(
    identifiers: ProductIdentifiers, quote: SourceQuote,
) -> ScoredQuote:
    """Score a raw quote exactly once.

    Quotes that are exact by construction (direct strong-id lookups)
    keep their 100; provisional search confidences are replaced.
    """
    if quote.confidence == EXACT_MATCH:
        confidence = EXACT_MATCH
    else:
        confidence = score(identifiers, quote)
    logger.debug(
        "[%s] '%s' scored %d", quote.site, quote.title[:60], confidence
    )
    return ScoredQuote.from_quote(quote, confidence)


def filter_by_confidence(
    quotes: list[ScoredQuote], min_confidence: int,
) -> list[ScoredQuote]:
    """Keep quotes at or above the threshold, preserving order."""
    return [q for q in quotes if q.confidence >= min_confidence]
