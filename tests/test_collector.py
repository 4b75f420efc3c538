"""Tests for catalog loading and content collection.

Tests cover:
- YAML catalog parsing and validation
- Topic, example and scenario units
- Missing topic files and whole-catalog failures
- Front matter handling
"""

import pytest

from conftest import write_catalog
from docsearch.errors import CatalogError, CollectionError, IndexBuildError
from docsearch.indexer.builder import build_search_index
from docsearch.indexer.models import ItemType
from docsearch.sources.collector import (
    CatalogCollector,
    StaticCollector,
    deduplicate,
    key_to_title,
    split_front_matter
)
from docsearch.sources.keywords import compile_vocabulary, extract_keywords
from docsearch.sources.loader import CatalogLoader, ScenarioSource


class TestCatalogLoader:
    """Test suite for CatalogLoader."""

    def test_load_catalog(self, catalog_dir):
        catalog = CatalogLoader().load(catalog_dir / "catalog.yaml")

        assert [topic.slug for topic in catalog.topics] == ["alpha", "beta"]
        assert catalog.topics[0].group == "Fundamentals"
        assert catalog.topics[0].category == "Documentation"
        assert [group.category for group in catalog.example_groups] == ["Unit Testing", "Quick Start"]
        assert catalog.scenarios[0].name == "modal-states"
        assert len(catalog.keyword_vocabulary) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError):
            CatalogLoader().load(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = write_catalog(tmp_path / "bad.yaml", "topics: [unclosed\n")
        with pytest.raises(CatalogError, match="invalid YAML"):
            CatalogLoader().load(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = write_catalog(tmp_path / "list.yaml", "- just\n- a list\n")
        with pytest.raises(CatalogError, match="mapping"):
            CatalogLoader().load(path)

    def test_empty_file_is_empty_catalog(self, tmp_path):
        catalog = CatalogLoader().load(write_catalog(tmp_path / "empty.yaml", ""))
        assert catalog.topics == []
        assert catalog.keyword_vocabulary

    def test_invalid_entries_are_skipped(self, tmp_path):
        path = write_catalog(tmp_path / "partial.yaml", """\
            topics:
              - slug: ok
                title: OK
              - title: Missing slug
              - just a string
            scenarios:
              - endpoint: not-a-path
                category: API Testing
              - endpoint: /api/examples/auth
                method: TRACE
                category: API Testing
        """)
        catalog = CatalogLoader().load(path)

        assert [topic.slug for topic in catalog.topics] == ["ok"]
        assert catalog.scenarios == []

    @pytest.mark.parametrize("urls", ["[/a]", "/a", "{login: 5}"])
    def test_example_group_with_bad_urls_is_skipped(self, tmp_path, urls):
        path = write_catalog(tmp_path / "groups.yaml", f"""\
            example_groups:
              - category: Broken
                base_url: /examples/broken
                urls: {urls}
                examples:
                  login: code
              - category: Forms
                base_url: /examples/forms
                examples:
                  login: await page.getByLabelText('Email').fill('a@b.c');
        """)
        catalog = CatalogLoader().load(path)

        assert [group.category for group in catalog.example_groups] == ["Forms"]

    def test_parse_is_cached_until_file_changes(self, catalog_dir):
        loader = CatalogLoader()
        path = catalog_dir / "catalog.yaml"

        assert loader.load(path) is loader.load(path)

        loader.reload_cache()
        assert loader.load(path) is not None

    def test_scenario_method_normalized(self):
        scenario = ScenarioSource(endpoint="/api/x", method="post", category="API", description="")
        assert scenario.method == "POST"


class TestHelpers:
    """Test suite for collector helpers."""

    def test_key_to_title(self):
        assert key_to_title("form_testing") == "Form Testing"
        assert key_to_title("ssr_testing") == "Ssr Testing"

    def test_split_front_matter(self):
        meta, body = split_front_matter("---\ntitle: 'Beta'\nkeywords: a, b\n---\n# Body\n")
        assert meta == {"title": "Beta", "keywords": "a, b"}
        assert body.strip() == "# Body"

    def test_no_front_matter(self):
        assert split_front_matter("# Just markdown") == ({}, "# Just markdown")

    def test_extract_keywords_whole_words_in_order(self):
        patterns = compile_vocabulary([r"mock|vi\.fn", r"form"])
        keywords = extract_keywords("Use vi.fn() to MOCK a form. Formatting is not a form match.", patterns)
        assert keywords == ["vi.fn", "mock", "form"]

    def test_deduplicate(self, sample_units):
        assert deduplicate(sample_units + sample_units[:2]) == sample_units


class TestCatalogCollector:
    """Test suite for CatalogCollector."""

    @pytest.mark.asyncio
    async def test_collects_all_unit_kinds(self, catalog_dir):
        collector = CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content")
        units = await collector.collect()

        assert [unit.type for unit in units] == ["topic", "topic", "example", "example", "code"]
        assert collector.failures == []
        assert collector.calls == 1

    @pytest.mark.asyncio
    async def test_topic_unit(self, catalog_dir):
        units = await CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content").collect()
        alpha = units[0]

        assert alpha.title == "Alpha Guide"
        assert alpha.description == "First topic"
        assert alpha.url == "/docs/alpha"
        assert alpha.category == "Documentation"
        assert "vi.mock" in alpha.raw_text
        assert alpha.keywords == ["mock", "vi.mock"]

    @pytest.mark.asyncio
    async def test_front_matter_keywords_override_extraction(self, catalog_dir):
        units = await CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content").collect()
        beta = units[1]

        assert beta.keywords == ["playwright", "e2e"]
        assert not beta.raw_text.startswith("---")

    @pytest.mark.asyncio
    async def test_example_units(self, catalog_dir):
        units = await CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content").collect()
        mock_test, form_testing = units[2], units[3]

        assert mock_test.title == "Mock Test"
        assert mock_test.description == "Unit Testing example: Mock Test"
        assert mock_test.url == "/examples/unit"
        assert mock_test.slug == "unit-testing-mock_test"
        assert mock_test.keywords == ["vi.fn"]

        assert form_testing.url == "/docs/getting-started#testing-form-inputs"
        assert form_testing.slug == "quick-start-form_testing"
        assert form_testing.category == "Quick Start"

    @pytest.mark.asyncio
    async def test_scenario_unit(self, catalog_dir):
        units = await CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content").collect()
        scenario = units[4]

        assert scenario.type == ItemType.CODE.value
        assert scenario.title == "Modal States"
        assert scenario.url == "/api/examples/modal-states"
        assert scenario.category == "Component Testing"
        assert "GET /api/examples/modal-states" in scenario.raw_text
        assert "Open/close state testing" in scenario.raw_text

    @pytest.mark.asyncio
    async def test_missing_topic_file_is_skipped(self, catalog_dir):
        (catalog_dir / "content" / "alpha.md").unlink()
        collector = CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content")

        units = await collector.collect()

        assert [unit.slug for unit in units if unit.type == "topic"] == ["beta"]
        assert len(collector.failures) == 1
        assert isinstance(collector.failures[0], CollectionError)
        assert collector.failures[0].source.endswith("alpha.md")

    @pytest.mark.asyncio
    async def test_failures_reset_between_collections(self, catalog_dir):
        alpha = catalog_dir / "content" / "alpha.md"
        text = alpha.read_text(encoding="utf-8")
        alpha.unlink()
        collector = CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content")

        await collector.collect()
        assert len(collector.failures) == 1

        alpha.write_text(text, encoding="utf-8")
        await collector.collect()
        assert collector.failures == []

    @pytest.mark.asyncio
    async def test_partial_index_when_some_topics_missing(self, catalog_dir):
        (catalog_dir / "content" / "beta.md").unlink()
        collector = CatalogCollector(catalog_dir / "catalog.yaml", catalog_dir / "content")

        index = await build_search_index(collector)

        assert index.get("topic-beta") is None
        assert index.get("topic-alpha") is not None
        assert index.get("example-quick-start-form_testing") is not None

    @pytest.mark.asyncio
    async def test_bad_example_group_keeps_the_rest(self, catalog_dir):
        path = catalog_dir / "catalog.yaml"
        path.write_text(path.read_text(encoding="utf-8").replace(
            "example_groups:\n",
            "example_groups:\n"
            "  - category: Broken\n"
            "    base_url: /examples/broken\n"
            "    urls: [/a]\n"
            "    examples:\n"
            "      login: code\n",
            1
        ), encoding="utf-8")
        collector = CatalogCollector(path, catalog_dir / "content")

        index = await build_search_index(collector)

        assert index.get("topic-alpha") is not None
        assert index.get("example-unit-testing-mock_test") is not None
        assert index.get("example-broken-login") is None

    @pytest.mark.asyncio
    async def test_all_sources_missing_fails_build(self, tmp_path):
        path = write_catalog(tmp_path / "catalog.yaml", """\
            topics:
              - slug: gone
                title: Gone
        """)
        collector = CatalogCollector(path, tmp_path / "content")

        with pytest.raises(IndexBuildError):
            await build_search_index(collector)

    @pytest.mark.asyncio
    async def test_missing_catalog_fails_build(self, tmp_path):
        collector = CatalogCollector(tmp_path / "missing.yaml", tmp_path)

        with pytest.raises(IndexBuildError) as exc_info:
            await build_search_index(collector)

        assert isinstance(exc_info.value.cause, CatalogError)

    @pytest.mark.asyncio
    async def test_bundled_catalog_builds(self):
        from docsearch.config.settings import SearchSettings

        settings = SearchSettings()
        index = await build_search_index(CatalogCollector(settings.catalog_path, settings.content_dir))

        assert index.get("topic-api-reference") is not None
        assert index.get("example-quick-start-form_testing").url == "/docs/getting-started#testing-form-inputs"
        assert index.get("code-authentication") is not None
        assert index.diagnostics == ()


class TestStaticCollector:
    """Test suite for StaticCollector."""

    @pytest.mark.asyncio
    async def test_counts_calls(self, sample_units):
        collector = StaticCollector(sample_units)
        await collector.collect()
        await collector.collect()
        assert collector.calls == 2
