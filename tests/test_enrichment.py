"""
Tests for website enrichment.
"""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from collectors.http_client import FetchResult
from enrichment.enricher import WebsiteEnricher, apply_enrichment, fallback_content
from enrichment.llm import EnrichedProductData, EnrichmentStatus, extract_product_content
from enrichment.normalizers import clean_text, extract_main_content, extract_meta
from schemas.candidate import Source
from schemas.entity import StoredEntity

PAGE = b"""
<html>
  <head>
    <title>Acme - Sales automation</title>
    <meta name="description" content="Automate your pipeline">
    <meta property="og:description" content="CRM sync for teams">
    <script>var tracking = 1;</script>
  </head>
  <body>
    <nav>Home | Pricing</nav>
    <main><h1>Acme</h1><p>Score leads automatically.</p></main>
    <footer>Copyright</footer>
  </body>
</html>
"""


def llm_response(payload):
    response = MagicMock()
    response.choices[0].message.content = payload if isinstance(payload, str) else json.dumps(payload)
    response.usage.total_tokens = 321
    return response


def stored(**kwargs):
    values = dict(
        slug="acme",
        name="Acme",
        tagline="Sales automation",
        description="Acme scores leads.",
        website="https://acme.io",
        source=Source.HACKER_NEWS,
        tags=["AI", "Sales", "CRM", "Leads", "B2B", "Extra"],
        viability_score=0.8,
    )
    values.update(kwargs)
    return StoredEntity(**values)


class TestNormalizers:
    """Tests for HTML text extraction."""

    def test_main_content_strips_boilerplate(self):
        text = extract_main_content(PAGE)
        assert "Score leads automatically." in text
        assert "tracking" not in text
        assert "Pricing" not in text
        assert "Copyright" not in text

    def test_max_chars(self):
        assert len(extract_main_content(b"<body>" + b"x" * 100 + b"</body>", max_chars=10)) == 10

    def test_meta(self):
        meta = extract_meta(PAGE)
        assert meta["title"] == "Acme - Sales automation"
        assert meta["description"] == "Automate your pipeline"
        assert meta["og:description"] == "CRM sync for teams"

    def test_clean_text(self):
        assert clean_text("a  \t b\n\n\n\nc\x00") == "a b\n\nc"


class TestExtractProductContent:
    """Tests for the litellm extraction call."""

    @patch("enrichment.llm.litellm.completion")
    def test_success(self, mock_completion):
        mock_completion.return_value = llm_response(
            {
                "extendedDescription": "Acme automates sales.",
                "keyFeatures": ["Lead scoring", "", "CRM sync"],
                "useCases": "not a list",
                "limitations": ["Limited information available"],
                "bestFor": ["Sales teams"],
            }
        )
        data, log = extract_product_content("id1", "Acme", None, None, "content", "m", "k")

        assert data.extended_description == "Acme automates sales."
        assert data.key_features == ["Lead scoring", "CRM sync"]
        assert data.use_cases == []
        assert log.status == EnrichmentStatus.SUCCESS
        assert log.llm_tokens_used == 321

    @patch("enrichment.llm.litellm.completion", side_effect=RuntimeError("quota"))
    def test_call_failure(self, mock_completion):
        data, log = extract_product_content("id1", "Acme", None, None, None, "m")
        assert data is None
        assert "quota" in log.errors[0]

    @patch("enrichment.llm.litellm.completion")
    def test_no_json(self, mock_completion):
        mock_completion.return_value = llm_response("Sorry, no.")
        data, log = extract_product_content("id1", "Acme", None, None, None, "m")
        assert data is None
        assert log.status == EnrichmentStatus.FAILED

    @patch("enrichment.llm.litellm.completion")
    def test_empty_description_rejected(self, mock_completion):
        mock_completion.return_value = llm_response({"keyFeatures": ["x"]})
        data, _ = extract_product_content("id1", "Acme", None, None, None, "m")
        assert data is None


class TestFallback:
    """Tests for fallback_content() and apply_enrichment()."""

    def test_fallback_from_existing_fields(self):
        data = fallback_content(stored())

        assert data.extended_description == "Sales automation\n\nAcme scores leads."
        assert data.key_features == ["AI", "Sales", "CRM", "Leads", "B2B"]
        assert data.limitations == ["Limited information available"]

    def test_fallback_name_only(self):
        data = fallback_content(stored(tagline=None, description=None, tags=[]))
        assert data.extended_description == "Acme"

    def test_apply_stamps_enriched_at(self):
        entity = apply_enrichment(stored(), EnrichedProductData(extended_description="x"))
        assert entity.enriched_at is not None
        assert entity.extended_description == "x"


class TestWebsiteEnricher:
    """Tests for WebsiteEnricher.enrich()."""

    def setup_method(self):
        self.client = MagicMock()
        self.client.fetch = AsyncMock(
            return_value=FetchResult(
                url="https://acme.io",
                status_code=200,
                content=PAGE,
                content_type="text/html; charset=utf-8",
                duration_ms=1.0,
                success=True,
            )
        )
        self.enricher = WebsiteEnricher(self.client, "m", "k")

    @pytest.mark.asyncio
    @patch("enrichment.llm.litellm.completion")
    async def test_generated(self, mock_completion):
        mock_completion.return_value = llm_response({"extendedDescription": "Acme automates sales."})
        outcome = await self.enricher.enrich(stored())

        assert outcome.generated
        assert outcome.data.extended_description == "Acme automates sales."
        prompt = mock_completion.call_args.kwargs["messages"][1]["content"]
        assert "Score leads automatically." in prompt
        assert "Automate your pipeline" in prompt

    @pytest.mark.asyncio
    @patch("enrichment.llm.litellm.completion", side_effect=RuntimeError("down"))
    async def test_falls_back(self, mock_completion):
        outcome = await self.enricher.enrich(stored())

        assert not outcome.generated
        assert "down" in outcome.error
        assert outcome.data.limitations == ["Limited information available"]

    @pytest.mark.asyncio
    async def test_non_html_ignored(self):
        self.client.fetch.return_value = FetchResult(
            url="https://acme.io/file.pdf",
            status_code=200,
            content=b"%PDF",
            content_type="application/pdf",
            duration_ms=1.0,
            success=True,
        )
        assert await self.enricher.fetch_content("https://acme.io/file.pdf") is None
