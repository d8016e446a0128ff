"""
Unit tests for SEO helpers: slugs, keywords, meta text, scoring and sitemaps.
"""

import re
from datetime import datetime

from marketplace_service.app.utils.seo import (
    build_sitemap_entry,
    extract_keywords,
    generate_meta_description,
    generate_meta_title,
    generate_product_alt_text,
    generate_seo_filename,
    generate_slug,
    score_product_image_seo,
    seo_grade,
    unique_slug,
    validate_image_file_seo,
    validate_seo_data,
)


class TestSlugs:
    def test_generate_slug_strips_accents_and_symbols(self):
        assert generate_slug("Café Crème & Tea!") == "cafe-creme-tea"

    def test_generate_slug_collapses_separators(self):
        assert generate_slug("  Brass   Table__Lamp -- XL ") == "brass-table-lamp-xl"

    def test_generate_slug_respects_max_length(self):
        slug = generate_slug("word " * 40, max_length=20)
        assert len(slug) <= 20
        assert not slug.endswith("-")

    def test_unique_slug_appends_first_free_counter(self):
        assert unique_slug("mug", []) == "mug"
        assert unique_slug("mug", ["mug", "mug-1"]) == "mug-2"


class TestKeywordsAndMeta:
    def test_extract_keywords_skips_stop_words_and_duplicates(self):
        text = "The <b>Brass</b> lamp and the brass shade"
        assert extract_keywords(text) == ["brass", "lamp", "shade"]

    def test_extract_keywords_limit(self):
        text = "alpha bravo charlie delta echo foxtrot"
        assert extract_keywords(text, max_keywords=3) == ["alpha", "bravo", "charlie"]

    def test_meta_description_strips_html(self):
        assert generate_meta_description("<p>Hello &amp; welcome</p>") == "Hello & welcome"

    def test_meta_description_cuts_at_sentence(self):
        text = "a" * 120 + ". " + "b" * 100
        assert generate_meta_description(text) == "a" * 120 + "."

    def test_meta_description_cuts_at_word_boundary(self):
        description = generate_meta_description("word " * 60)
        assert description.endswith("word...")
        assert len(description) <= 160

    def test_meta_title_includes_category_and_site(self):
        assert (
            generate_meta_title("Brass Lamp", "Marketplace", "Lighting")
            == "Brass Lamp - Lighting | Marketplace"
        )

    def test_meta_title_drops_site_name_when_too_long(self):
        title = generate_meta_title("x" * 58, "Marketplace")
        assert title == "x" * 58

    def test_alt_text_for_main_and_gallery_images(self):
        assert (
            generate_product_alt_text(
                "Brass Lamp", "Marketplace", brand="Kasur Works", category="Lighting"
            )
            == "Brass Lamp by Kasur Works - Lighting - Buy online at Marketplace"
        )
        assert (
            generate_product_alt_text("Brass Lamp", "Marketplace", index=1)
            == "Brass Lamp - View 2 - Marketplace"
        )

    def test_seo_filename_pattern(self):
        filename = generate_seo_filename("Photo.JPEG", "Brass Lamp", "Home Decor")
        assert re.match(r"^home-decor-brass-lamp-\d+-[0-9a-f]{6}\.jpg$", filename)


class TestValidation:
    def test_validate_seo_data_reports_each_problem(self):
        result = validate_seo_data(title="Short", slug="Bad Slug")
        assert result["is_valid"] is False
        assert len(result["errors"]) == 2

    def test_validate_seo_data_accepts_good_metadata(self):
        result = validate_seo_data(
            title="Brass Table Lamp | Marketplace",
            description="d" * 60,
            slug="brass-table-lamp",
        )
        assert result == {"is_valid": True, "errors": []}

    def test_validate_image_file_seo_good_image(self):
        result = validate_image_file_seo(
            "products/brass-lamp.jpg", {"width": 800, "height": 800, "size": 100_000}
        )
        assert result["valid"] is True
        assert result["seo_score"] == 100

    def test_validate_image_file_seo_poor_image(self):
        result = validate_image_file_seo(
            "IMG 001.JPG", {"width": 200, "height": 100, "size": 600 * 1024}
        )
        assert result["valid"] is False
        assert len(result["issues"]) == 3
        assert result["seo_score"] == 20


class TestImageScoring:
    def test_product_without_images_or_alt_text(self):
        result = score_product_image_seo("Brass Lamp", None, None, None)
        assert result["seo_score"] == 35
        assert result["grade"] == "F"
        assert result["image_count"] == 0

    def test_well_described_product(self):
        result = score_product_image_seo(
            "Brass Lamp",
            "products/brass-lamp-123.jpg",
            ["products/brass-lamp-456.jpg"],
            "Brass Lamp - Buy online at Marketplace",
        )
        assert result == {"image_count": 2, "seo_score": 100, "grade": "A", "issues": []}

    def test_alt_text_and_filename_penalties(self):
        result = score_product_image_seo(
            "Brass Lamp", "products/IMG_001.jpg", None, "A lovely thing on a table"
        )
        assert result["seo_score"] == 75
        assert result["grade"] == "C"
        assert "Alt text doesn't include product name" in result["issues"]
        assert "Filename not SEO-friendly" in result["issues"]

    def test_grade_boundaries(self):
        assert [seo_grade(s) for s in (90, 89, 70, 60, 59)] == ["A", "B", "C", "D", "F"]


class TestSitemapEntries:
    def test_product_entry(self):
        entry = build_sitemap_entry(
            "product", "brass-lamp", "https://shop.example/", datetime(2026, 3, 1)
        )
        assert entry == {
            "loc": "https://shop.example/product/brass-lamp",
            "lastmod": "2026-03-01",
            "changefreq": "weekly",
            "priority": "0.8",
        }

    def test_home_page_entry(self):
        entry = build_sitemap_entry("page", "", "https://shop.example")
        assert entry["loc"] == "https://shop.example"
        assert entry["priority"] == "0.5"
