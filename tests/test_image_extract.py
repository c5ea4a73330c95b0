"""
Tests for Steam image extraction (skinsheet/pipeline/image_extract.py).

Covers:
- Strategy A: nested icon search, large-icon preference, traversal bounds
- Strategy B: results_html <img> scraping and &amp; unescaping
- URL completion and size upgrade
- extract_image_url: strategy order, None when nothing matches
"""

from __future__ import annotations

from skinsheet.pipeline.image_extract import (
    absolutize,
    extract_image_url,
    find_icon_url,
    scrape_results_html,
    upgrade_image_size,
)

CDN = "https://community.fastly.steamstatic.com/economy/image/"


class TestFindIconUrl:
    def test_finds_deeply_nested_icon(self) -> None:
        tree = {"730": {"2": {"123": {"classid": "1", "icon_url": "hash-a"}}}}

        assert find_icon_url(tree) == "hash-a"

    def test_large_icon_preferred_on_same_node(self) -> None:
        tree = {"x": {"icon_url": "small", "icon_url_large": "large"}}

        assert find_icon_url(tree) == "large"

    def test_searches_lists(self) -> None:
        tree = {"descriptions": [{"type": "html"}, {"icon_url": "from-list"}]}

        assert find_icon_url(tree) == "from-list"

    def test_ignores_non_string_and_empty_values(self) -> None:
        tree = {"a": {"icon_url": None}, "b": {"icon_url": ""}, "c": {"icon_url": 12}}

        assert find_icon_url(tree) is None

    def test_scalars_and_empty(self) -> None:
        assert find_icon_url(None) is None
        assert find_icon_url("icon_url") is None
        assert find_icon_url({}) is None

    def test_depth_limit(self) -> None:
        tree: dict = {"icon_url": "too-deep"}
        for _ in range(10):
            tree = {"n": tree}

        assert find_icon_url(tree, max_depth=5) is None
        assert find_icon_url(tree, max_depth=20) == "too-deep"

    def test_node_limit(self) -> None:
        # "z" is pushed first, so it is popped last
        tree: dict = {"z": {"icon_url": "late"}}
        tree.update({str(i): {"k": i} for i in range(50)})

        assert find_icon_url(tree, max_nodes=3) is None


class TestScrapeResultsHtml:
    def test_prefers_steamstatic(self) -> None:
        html = (
            '<div><img src="https://other.cdn/a.png" />'
            '<img id="result_0_image" src="https://community.steamstatic.com/economy/image/abc/62fx62f?x=1&amp;y=2" srcset="..."></div>'
        )

        assert scrape_results_html(html) == "https://community.steamstatic.com/economy/image/abc/62fx62f?x=1&y=2"

    def test_falls_back_to_any_img(self) -> None:
        assert scrape_results_html('<img class="x" src="https://other.cdn/a.png">') == "https://other.cdn/a.png"

    def test_no_img(self) -> None:
        assert scrape_results_html("<div>No listings</div>") is None
        assert scrape_results_html("") is None


class TestUrlHelpers:
    def test_absolutize_relative_hash(self) -> None:
        assert absolutize("abc123") == CDN + "abc123"

    def test_absolutize_keeps_absolute(self) -> None:
        assert absolutize("https://x/y.png") == "https://x/y.png"

    def test_absolutize_protocol_relative(self) -> None:
        assert absolutize("//cdn.test/y.png") == "https://cdn.test/y.png"

    def test_upgrade_size(self) -> None:
        assert (
            upgrade_image_size("https://x/economy/image/abc/62fx62f")
            == "https://x/economy/image/abc/360fx360f"
        )

    def test_upgrade_without_token_unchanged(self) -> None:
        assert upgrade_image_size("https://x/economy/image/abc") == "https://x/economy/image/abc"

    def test_upgrade_none(self) -> None:
        assert upgrade_image_size(None) is None


class TestExtractImageUrl:
    def test_strategy_a_relative_icon(self) -> None:
        data = {"assets": {"730": {"2": {"1": {"icon_url": "hash/62fx62f"}}}}, "results_html": ""}

        assert extract_image_url(data) == CDN + "hash/360fx360f"

    def test_strategy_a_wins_over_html(self) -> None:
        data = {
            "assets": {"730": {"2": {"1": {"icon_url": "from-assets"}}}},
            "results_html": '<img src="https://community.steamstatic.com/from-html/62fx62f">',
        }

        assert extract_image_url(data) == CDN + "from-assets"

    def test_strategy_b_when_no_assets(self) -> None:
        data = {
            "results_html": '<img src="https://community.steamstatic.com/economy/image/zz/62fx62f">',
        }

        assert extract_image_url(data) == "https://community.steamstatic.com/economy/image/zz/360fx360f"

    def test_strategy_b_when_assets_have_no_icon(self) -> None:
        data = {
            "assets": {"730": {"2": {"1": {"classid": "1"}}}},
            "results_html": '<img src="https://community.steamstatic.com/economy/image/zz">',
        }

        assert extract_image_url(data) == "https://community.steamstatic.com/economy/image/zz"

    def test_nothing_found(self) -> None:
        assert extract_image_url({"success": True, "results_html": "<div></div>"}) is None
        assert extract_image_url({}) is None
        assert extract_image_url([]) is None
