"""Shared fixtures for docsearch tests."""

import textwrap
from datetime import datetime, timezone
from pathlib import Path

import pytest

from docsearch.config.settings import SearchSettings
from docsearch.indexer.builder import build_index
from docsearch.indexer.models import RawContentUnit

FIXED_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = FIXED_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_unit(**overrides) -> RawContentUnit:
    data = {
        "title": "Sample Topic",
        "description": "A sample topic",
        "url": "/docs/sample",
        "type": "topic",
        "raw_text": "Sample body text.",
        "category": "Documentation",
        "keywords": [],
        "slug": None,
    }
    data.update(overrides)
    return RawContentUnit(**data)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_units():
    """A small corpus covering every item type and filter bucket."""
    return [
        make_unit(
            title="API Reference",
            description="Complete testing utilities and helper functions",
            url="/docs/api-reference",
            raw_text="## Mocking with vi\n\n`vi.fn()` creates a mock function that records its calls.",
            keywords=["vi.fn", "test", "expect"],
            slug="api-reference",
        ),
        make_unit(
            title="Component Testing",
            description="Browser-based component testing patterns",
            url="/docs/component-testing",
            raw_text="Render a component in a real browser and interact with it through locators.",
            keywords=["component", "render", "browser"],
            slug="component-testing",
        ),
        make_unit(
            title="Form Testing",
            description="Quick Start example: Form Testing",
            url="/docs/getting-started#testing-form-inputs",
            type="example",
            raw_text="test('form validation works', async () => { render(LoginForm); });",
            category="Quick Start",
            keywords=["test", "form", "render"],
            slug="quick-start-form_testing",
        ),
        make_unit(
            title="Component Test",
            description="Unit Testing example: Component Test",
            url="/examples/unit",
            type="example",
            raw_text="const on_click = vi.fn(); render(Button, { props: { on_click } });",
            category="Unit Testing",
            keywords=["vi.fn", "render", "component", "button"],
            slug="unit-testing-component_test",
        ),
        make_unit(
            title="Modal Props",
            description="Components example: Modal Props",
            url="/components",
            type="example",
            raw_text="<Modal {is_open} size=\"md\" title=\"Confirm\">Modal content goes here</Modal>",
            category="Components",
            keywords=["modal"],
            slug="components-modal_props",
        ),
        make_unit(
            title="Button Variants",
            description="Button component testing scenarios with variants, sizes, and states",
            url="/api/examples/button-variants",
            type="code",
            raw_text="GET /api/examples/button-variants\nClick event handling\nAccessibility (ARIA attributes)",
            category="Component Testing",
            keywords=["button", "click", "aria"],
            slug="button-variants",
        ),
    ]


@pytest.fixture
def sample_index(sample_units, fake_clock):
    return build_index(sample_units, clock=fake_clock)


CATALOG_YAML = """\
keyword_vocabulary:
  - 'mock|vi\\.fn|vi\\.mock'
  - 'browser|playwright'
  - 'form|modal'

topics:
  - slug: alpha
    title: Alpha Guide
    description: First topic
    group: Fundamentals
  - slug: beta
    title: Beta Guide
    description: Second topic

example_groups:
  - category: Unit Testing
    base_url: /examples/unit
    examples:
      mock_test: |
        const handler = vi.fn();
  - category: Quick Start
    id_prefix: quick-start
    base_url: /docs/getting-started
    urls:
      form_testing: /docs/getting-started#testing-form-inputs
    examples:
      form_testing: |
        await page.getByLabelText('Email').fill('user@example.com');

scenarios:
  - endpoint: /api/examples/modal-states
    method: GET
    category: Component Testing
    description: Modal state scenarios
    patterns:
      - Open/close state testing
"""

ALPHA_MD = """\
# Alpha

Alpha explains how to mock modules with vi.mock before rendering.
"""

BETA_MD = """\
---
title: Beta
keywords: playwright, e2e
---
# Beta

Beta covers browser journeys end to end.
"""


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """A catalog with two topics, two example groups and one scenario."""
    (tmp_path / "catalog.yaml").write_text(CATALOG_YAML, encoding="utf-8")
    content = tmp_path / "content"
    content.mkdir()
    (content / "alpha.md").write_text(ALPHA_MD, encoding="utf-8")
    (content / "beta.md").write_text(BETA_MD, encoding="utf-8")
    return tmp_path


@pytest.fixture
def catalog_settings(catalog_dir: Path) -> SearchSettings:
    return SearchSettings(
        catalog_path=catalog_dir / "catalog.yaml",
        content_dir=catalog_dir / "content",
        rate_limit_enabled=False,
    )


def write_catalog(path: Path, body: str) -> Path:
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path
