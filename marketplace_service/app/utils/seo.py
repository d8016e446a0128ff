"""
SEO helpers shared by the catalog, the SEO dashboards and the bulk scripts.

Everything here is pure: no database or filesystem access.
"""

import html
import re
import secrets
import time
import unicodedata
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Optional

STOP_WORDS = frozenset(
    [
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "can", "this", "that", "these",
        "those", "from", "your", "our", "you", "all", "any", "its", "into",
        "not", "also", "more", "than", "very",
    ]
)

TITLE_MIN, TITLE_MAX = 10, 60
DESCRIPTION_MIN, DESCRIPTION_MAX = 50, 160
SLUG_MIN, SLUG_MAX = 3, 100
ALT_TEXT_MIN, ALT_TEXT_MAX = 10, 125
LARGE_IMAGE_BYTES = 500 * 1024

_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
_SEO_FILENAME_PATTERN = re.compile(r"^[a-z0-9-]+\.(jpg|jpeg|png|webp)$", re.I)
_TAG_PATTERN = re.compile(r"<[^>]+>")


def generate_slug(text: str, max_length: int = SLUG_MAX) -> str:
    """Lowercase, ASCII-only, hyphen-separated slug."""
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower().strip()
    ascii_text = re.sub(r"[^\w\s-]", "", ascii_text)
    slug = re.sub(r"[\s_-]+", "-", ascii_text).strip("-")
    return slug[:max_length].rstrip("-")


def unique_slug(base_slug: str, taken: Iterable[str]) -> str:
    """Return `base_slug` or the first free `base_slug-N`."""
    taken_set = set(taken)
    if base_slug not in taken_set:
        return base_slug
    counter = 1
    while f"{base_slug}-{counter}" in taken_set:
        counter += 1
    return f"{base_slug}-{counter}"


def strip_html(text: str) -> str:
    text = _TAG_PATTERN.sub(" ", text or "")
    return re.sub(r"\s+", " ", html.unescape(text)).strip()


def extract_keywords(text: str, max_keywords: int = 10) -> List[str]:
    """Distinct non-stop-words longer than two characters, in order of appearance."""
    if not text:
        return []
    words = re.sub(r"[^\w\s]", " ", strip_html(text).lower()).split()
    keywords: List[str] = []
    for word in words:
        if len(word) > 2 and word not in STOP_WORDS and word not in keywords:
            keywords.append(word)
            if len(keywords) >= max_keywords:
                break
    return keywords


def generate_meta_description(text: str, max_length: int = DESCRIPTION_MAX) -> str:
    """
    Plain-text summary no longer than `max_length`.

    Cuts at the last full sentence when that keeps most of the text,
    otherwise at the last word boundary followed by an ellipsis.
    """
    clean = strip_html(text)
    if len(clean) <= max_length:
        return clean

    truncated = clean[:max_length]
    last_period = truncated.rfind(".")
    if last_period > max_length - 50:
        return truncated[: last_period + 1]

    truncated = clean[: max_length - 3]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated.rstrip(" ,;:-") + "..."


def generate_meta_title(name: str, site_name: str, category: Optional[str] = None) -> str:
    parts = [name]
    if category:
        parts.append(category)
    title = " - ".join(parts)
    with_site = f"{title} | {site_name}"
    if len(with_site) <= TITLE_MAX:
        return with_site
    return title[:TITLE_MAX].rstrip()


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    cut = text[:max_length].rsplit(" ", 1)[0]
    return cut.rstrip(" -,")


def generate_product_alt_text(
    name: str,
    site_name: str,
    index: int = 0,
    brand: Optional[str] = None,
    category: Optional[str] = None,
) -> str:
    """Alt text for the `index`-th image of a product."""
    if index == 0:
        text = name
        if brand:
            text += f" by {brand}"
        if category:
            text += f" - {category}"
        text += f" - Buy online at {site_name}"
    else:
        text = f"{name} - View {index + 1}"
        if category:
            text += f" - {category}"
        text += f" - {site_name}"
    return _truncate(text, ALT_TEXT_MAX)


def generate_category_alt_text(name: str, site_name: str) -> str:
    return _truncate(
        f"{name} products - Shop quality {name.lower()} at {site_name}", ALT_TEXT_MAX
    )


def generate_vendor_alt_text(business_name: str, site_name: str) -> str:
    return _truncate(f"{business_name} - Trusted seller on {site_name}", ALT_TEXT_MAX)


def generate_seo_filename(
    original_filename: str, name: str, category: Optional[str] = None
) -> str:
    """`<category>-<name>-<millis>-<random>.<ext>` with a lowercase extension."""
    suffix = PurePath(original_filename or "").suffix.lower()
    if suffix == ".jpeg":
        suffix = ".jpg"
    if not suffix:
        suffix = ".jpg"

    base = generate_slug(name, max_length=50) or "image"
    if category:
        category_slug = generate_slug(category, max_length=30)
        if category_slug:
            base = f"{category_slug}-{base}"

    return f"{base}-{int(time.time() * 1000)}-{secrets.token_hex(3)}{suffix}"


def validate_seo_data(
    title: Optional[str] = None,
    description: Optional[str] = None,
    slug: Optional[str] = None,
) -> Dict[str, Any]:
    """Check meta title, meta description and slug against length and pattern rules."""
    errors: List[str] = []

    if title is not None:
        if len(title) < TITLE_MIN:
            errors.append(f"Title should be at least {TITLE_MIN} characters")
        elif len(title) > TITLE_MAX:
            errors.append(f"Title should not exceed {TITLE_MAX} characters")

    if description is not None:
        if len(description) < DESCRIPTION_MIN:
            errors.append(
                f"Description should be at least {DESCRIPTION_MIN} characters"
            )
        elif len(description) > DESCRIPTION_MAX:
            errors.append(
                f"Description should not exceed {DESCRIPTION_MAX} characters"
            )

    if slug is not None:
        if not _SLUG_PATTERN.match(slug):
            errors.append(
                "Slug should only contain lowercase letters, numbers, and hyphens"
            )
        if not SLUG_MIN <= len(slug) <= SLUG_MAX:
            errors.append(f"Slug should be between {SLUG_MIN} and {SLUG_MAX} characters")

    return {"is_valid": not errors, "errors": errors}


def seo_grade(score: int) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def score_product_image_seo(
    name: str, image: Optional[str], images: Optional[List[str]], alt_text: Optional[str]
) -> Dict[str, Any]:
    """Heuristic 0-100 image SEO score for one product record."""
    image_count = len(images or []) + (1 if image else 0)
    score = 100
    issues: List[str] = []

    if image_count == 0:
        score -= 40
        issues.append("No images uploaded")

    if not alt_text or len(alt_text) < ALT_TEXT_MIN:
        score -= 25
        issues.append("Missing or inadequate alt text")
    elif len(alt_text) > ALT_TEXT_MAX:
        score -= 10
        issues.append("Alt text too long")

    if alt_text and name and name.lower()[:10] not in alt_text.lower():
        score -= 15
        issues.append("Alt text doesn't include product name")

    if image and name:
        name_fragment = re.sub(r"\s+", "-", name.lower())[:15]
        if name_fragment not in image.lower():
            score -= 10
            issues.append("Filename not SEO-friendly")

    score = max(0, score)
    return {
        "image_count": image_count,
        "seo_score": score,
        "grade": seo_grade(score),
        "issues": issues,
    }


def validate_image_file_seo(filename: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Check one stored image's size, dimensions and filename."""
    issues: List[str] = []
    recommendations: List[str] = []
    width = metadata.get("width") or 0
    height = metadata.get("height") or 0

    if metadata.get("size", 0) > LARGE_IMAGE_BYTES:
        issues.append("Image file size is large (>500KB)")
        recommendations.append("Consider optimizing image for web delivery")

    if width > 2000 or height > 2000:
        issues.append("Image dimensions are very large")
        recommendations.append("Resize image to maximum 1920x1920 for web")

    if width < 300 or height < 300:
        issues.append("Image dimensions are small for main product image")
        recommendations.append("Use minimum 300x300 pixels for product images")

    if height and abs(width / height - 1) > 0.5:
        recommendations.append(
            "Consider using square or near-square aspect ratios for product images"
        )

    if not _SEO_FILENAME_PATTERN.match(PurePath(filename).name):
        issues.append("Filename is not SEO-friendly")
        recommendations.append(
            "Use descriptive, hyphen-separated filenames with product keywords"
        )

    return {
        "valid": not issues,
        "issues": issues,
        "recommendations": recommendations,
        "seo_score": max(0, 100 - len(issues) * 20 - len(recommendations) * 5),
    }


def build_sitemap_entry(
    kind: str, slug: str, base_url: str, updated_at: Optional[datetime] = None
) -> Dict[str, Any]:
    """URL, change frequency and priority for a product, category or page."""
    base_url = base_url.rstrip("/")
    if kind == "product":
        loc, changefreq, priority = f"{base_url}/product/{slug}", "weekly", "0.8"
    elif kind == "category":
        loc, changefreq, priority = f"{base_url}/category/{slug}", "monthly", "0.7"
    else:
        loc, changefreq, priority = f"{base_url}/{slug}".rstrip("/"), "monthly", "0.5"

    return {
        "loc": loc,
        "lastmod": (updated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d"),
        "changefreq": changefreq,
        "priority": priority,
    }
