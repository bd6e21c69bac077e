"""
Tests for the batch entry points, tracked stages and the full pipeline.
"""
import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from collectors.base import AdapterResult, SourceAdapter
from conftest import build_settings, make_candidate
from core.context import CurationContext
from gatekeeper.classifier import Classifier
from pipelines.actions import UnknownActionError, run_action
from pipelines.cli import main
from pipelines.full import run_full_pipeline
from pipelines.stages import (
    StageReporter,
    identify_low_quality,
    prune,
    remove_low_quality,
    run_admission,
    run_aggregation,
    run_enrichment,
    run_gatekeeping,
    run_scoring,
    run_stage,
)
from schemas.base import utcnow
from schemas.candidate import Source
from schemas.entity import StoredEntity
from schemas.job import JobStatus, JobType
from schemas.score import ScoreSource
from scoring.rubric import ScorerError
from scoring.scorer import Scorer


class StaticAdapter(SourceAdapter):
    source_name = "static"

    def __init__(self, name, candidates):
        super().__init__(name=name)
        self.candidates = candidates

    async def fetch(self):
        return AdapterResult(success=True, products=self.candidates)


def verdict_for(candidate, taxonomy):
    """Accept everything except names starting with 'Hobby'."""
    commercial = not candidate.name.startswith("Hobby")
    return json.dumps(
        {
            "isCommercialSaaS": commercial,
            "targetAudience": "b2b" if commercial else "b2c",
            "productType": "saas",
            "businessCategory": "sales",
            "confidence": 0.85,
            "rejectionReason": None if commercial else "Personal project",
        }
    )


def mock_classifier():
    classifier = MagicMock(spec=Classifier)
    classifier.classify.side_effect = verdict_for
    return classifier


def seed(ctx, slug, **kwargs):
    values = dict(slug=slug, name=slug.title(), source=Source.MANUAL, website=f"https://{slug}.io", upvotes=100)
    values.update(kwargs)
    return ctx.entities.create(StoredEntity(**values))


# ── Admission and aggregation ────────────────────────────────


class TestRunAdmission:
    """Tests for run_admission()."""

    @pytest.mark.asyncio
    async def test_counts_every_outcome(self, ctx):
        candidates = [
            make_candidate(),
            make_candidate(),
            make_candidate(name="Tube", source_id="t", website="https://youtube.com/x"),
            make_candidate(name="Top 5 CRMs for 2025", source_id="l"),
        ]
        summary = await run_admission(ctx, candidates)

        assert summary.created == 1
        assert summary.updated == 1
        assert summary.rejected == 2
        assert summary.errors == 0
        stored = ctx.entities.get_by_slug("acme")
        assert stored.is_commercial_saas is True
        assert stored.viability_score == 0.4

    @pytest.mark.asyncio
    async def test_skip_gatekeeper_leaves_unclassified(self, ctx):
        await run_admission(ctx, [make_candidate()], skip_gatekeeper=True)
        assert ctx.entities.count_unclassified() == 1

    @pytest.mark.asyncio
    async def test_best_candidates_win_capacity(self):
        ctx = CurationContext.in_memory(build_settings(max_entities=1))
        weak = make_candidate(name="Weak", source_id="w", upvotes=60)
        strong = make_candidate(name="Strong", source_id="s", upvotes=1500)
        summary = await run_admission(ctx, [weak, strong], skip_gatekeeper=True)

        assert ctx.entities.count() == 1
        assert ctx.entities.get_by_slug("strong") is not None
        assert summary.skipped == 1

    @pytest.mark.asyncio
    async def test_store_failure_counted(self, ctx):
        with patch.object(ctx.entities, "create", side_effect=RuntimeError("disk full")):
            summary = await run_admission(ctx, [make_candidate()], skip_gatekeeper=True)
        assert summary.errors == 1
        assert summary.created == 0

    @pytest.mark.asyncio
    async def test_classifier_rejection_not_stored(self, settings):
        ctx = CurationContext.in_memory(settings, classifier=mock_classifier())
        summary = await run_admission(ctx, [make_candidate(name="Hobby Thing", source_id="h")])

        assert summary.rejected == 1
        assert ctx.entities.count() == 0


class TestRunAggregation:
    """Tests for run_aggregation()."""

    @pytest.mark.asyncio
    async def test_aggregates_and_admits(self, ctx):
        adapters = [
            StaticAdapter("hn", [make_candidate()]),
            StaticAdapter("ph", [make_candidate(name="Acme", source=Source.PRODUCT_HUNT)]),
        ]
        summary = await run_aggregation(ctx, adapters)

        assert summary.scraped == 2
        assert summary.sources["hn"].count == 1
        assert summary.admission.created == 1
        assert summary.admission.updated == 1
        assert ctx.entities.count() == 1


# ── Gatekeeping ──────────────────────────────────────────────


class TestRunGatekeeping:
    """Tests for run_gatekeeping()."""

    @pytest.mark.asyncio
    async def test_batch_resumes(self):
        ctx = CurationContext.in_memory(
            build_settings(gatekeeper_batch_size=2), classifier=mock_classifier()
        )
        now = utcnow()
        seed(ctx, "alpha", created_at=now)
        seed(ctx, "hobby-kit", name="Hobby Kit", created_at=now + timedelta(seconds=1))
        seed(ctx, "gamma", created_at=now + timedelta(seconds=2))

        first = await run_gatekeeping(ctx)
        assert first.assessed == 1
        assert first.rejected == 1
        assert first.remaining == 1
        assert ctx.entities.get_by_slug("hobby-kit") is None
        assert ctx.entities.get_by_slug("alpha").viability_score == 0.85

        second = await run_gatekeeping(ctx)
        assert second.assessed == 1
        assert second.remaining == 0

        third = await run_gatekeeping(ctx)
        assert third.assessed == 0
        assert third.items == []

    @pytest.mark.asyncio
    async def test_without_classifier_uses_rules(self, ctx):
        seed(ctx, "acme", name="Acme", description="Sales automation platform for business teams")
        summary = await run_gatekeeping(ctx)

        assert summary.assessed == 1
        assert ctx.entities.get_by_slug("acme").viability_score == 0.4
        assert ctx.entities.get_by_slug("acme").score.scored_by == ScoreSource.RULES


# ── Product scoring ──────────────────────────────────────────


class TestRunScoring:
    """Tests for run_scoring()."""

    @pytest.mark.asyncio
    async def test_rubric_without_model(self, ctx):
        seed(ctx, "acme", viability_score=0.8, description="Free CRM with a REST API")
        seed(ctx, "globex", viability_score=0.7)
        seed(ctx, "pending", viability_score=None)

        summary = await run_scoring(ctx)

        assert summary.fallback == 2
        assert summary.scored == 0
        assert summary.remaining == 0
        acme = ctx.entities.get_by_slug("acme").score
        assert acme.scored_by == ScoreSource.RULES
        assert acme.pricing == 8
        assert ctx.entities.get_by_slug("pending").score is None

    @pytest.mark.asyncio
    async def test_batch_size_limits_slice(self, ctx):
        for slug in ("one", "two", "three"):
            seed(ctx, slug, viability_score=0.8)

        first = await run_scoring(ctx, batch_size=2)
        second = await run_scoring(ctx, batch_size=2)

        assert first.fallback == 2
        assert first.remaining == 1
        assert second.fallback == 1
        assert second.remaining == 0

    @pytest.mark.asyncio
    async def test_model_scores_counted(self):
        model = MagicMock(spec=Scorer)
        model.score.side_effect = [
            json.dumps({"scores": {"pricing": 9, "security": 7}, "confidence": 0.9}),
            ScorerError("quota"),
        ]
        ctx = CurationContext.in_memory(build_settings(), scorer=model)
        seed(ctx, "acme", viability_score=0.8)
        seed(ctx, "globex", viability_score=0.8)

        summary = await run_scoring(ctx)

        assert summary.scored == 1
        assert summary.fallback == 1
        assert model.score.call_count == 2
        assert ctx.entities.get_by_slug("acme").score.pricing == 9
        assert ctx.entities.get_by_slug("globex").score.scored_by == ScoreSource.RULES

    @pytest.mark.asyncio
    async def test_store_failure_counted(self, ctx):
        seed(ctx, "acme", viability_score=0.8)

        with patch.object(ctx.entities, "update", side_effect=RuntimeError("disk full")):
            summary = await run_scoring(ctx)

        assert summary.errors == 1
        assert summary.items[0].status == "error"
        assert summary.remaining == 1

    @pytest.mark.asyncio
    async def test_score_action(self, ctx):
        seed(ctx, "acme", viability_score=0.8)
        result = await run_action(ctx, "score")

        assert result["ok"] is True
        assert result["job_type"] == "score"
        assert result["result"]["fallback"] == 1


# ── Enrichment ───────────────────────────────────────────────


class TestRunEnrichment:
    """Tests for run_enrichment()."""

    @pytest.mark.asyncio
    async def test_skipped_without_llm(self, ctx):
        seed(ctx, "acme", viability_score=0.8)
        summary = await run_enrichment(ctx)

        assert summary.skipped == 1
        assert summary.remaining == 1
        assert ctx.entities.get_by_slug("acme").enriched_at is None

    @pytest.mark.asyncio
    @patch("pipelines.stages.WebsiteEnricher.fetch_content", new_callable=AsyncMock)
    @patch("enrichment.llm.litellm.completion")
    async def test_enriches_and_falls_back(self, mock_completion, mock_fetch):
        ctx = CurationContext.in_memory(build_settings(llm_api_key="k", enrich_batch_size=5))
        seed(ctx, "good", viability_score=0.8, upvotes=500)
        seed(ctx, "bad", viability_score=0.8, upvotes=50, tagline="Bad tagline")
        seed(ctx, "pending", viability_score=None)
        mock_fetch.return_value = "Landing page text"

        good = MagicMock()
        good.choices[0].message.content = json.dumps({"extendedDescription": "Good things."})
        mock_completion.side_effect = [good, RuntimeError("quota")]

        summary = await run_enrichment(ctx)

        assert summary.enriched == 1
        assert summary.failed == 1
        assert summary.remaining == 0
        assert ctx.entities.get_by_slug("good").extended_description == "Good things."
        bad = ctx.entities.get_by_slug("bad")
        assert bad.enriched_at is not None
        assert bad.extended_description == "Bad tagline"
        assert ctx.entities.get_by_slug("pending").enriched_at is None


# ── Cleanup ──────────────────────────────────────────────────


class TestCleanup:
    """Tests for identify_low_quality(), remove_low_quality() and prune()."""

    def _seed_mixed(self, ctx):
        seed(ctx, "good")
        seed(ctx, "listicle", name="Top 10 CRMs for 2025")
        seed(ctx, "repo", website="https://github.com/a/b")
        seed(ctx, "nosite", website=None)
        seed(ctx, "gamey", tags=["games"])
        seed(ctx, "quiet", upvotes=0)

    def test_identify(self, ctx):
        self._seed_mixed(ctx)
        reasons = {e.slug: e.reason for e in identify_low_quality(ctx)}

        assert set(reasons) == {"listicle", "repo", "nosite", "gamey", "quiet"}
        assert reasons["repo"] == "Excluded domain"
        assert reasons["nosite"] == "No website"
        assert reasons["gamey"] == "Rejection keyword: games"
        assert reasons["quiet"] == "Engagement below minimum floors"
        assert ctx.entities.count() == 6

    def test_remove_bounded(self):
        ctx = CurationContext.in_memory(build_settings(cleanup_max_delete=2))
        self._seed_mixed(ctx)
        summary = remove_low_quality(ctx)

        assert summary.identified == 5
        assert summary.removed == 2
        assert ctx.entities.count() == 4
        assert summary.total_removed == 2
        assert summary.model_dump()["total_removed"] == 2

    def test_prune(self, ctx):
        old = utcnow() - timedelta(days=365)
        seed(ctx, "stale", created_at=old, updated_at=old, upvotes=5)
        seed(ctx, "loved", created_at=old, updated_at=old, upvotes=5000)
        seed(ctx, "fresh", upvotes=5)

        assert prune(ctx) == 1
        assert ctx.entities.get_by_slug("stale") is None
        assert prune(ctx, max_age_days=0, min_upvotes=10_000, min_stars=10_000) >= 2


# ── Tracked stages ───────────────────────────────────────────


class TestRunStage:
    """Tests for run_stage()."""

    @pytest.mark.asyncio
    async def test_success_completes_job(self, ctx):
        async def runner(ctx, reporter):
            reporter.progress(1, 2, step="Working", item="Acme")
            return [1, 2, 3]

        outcome = await run_stage(ctx, JobType.CLEANUP, runner, {"action": "x"})
        job = ctx.tracker.get(outcome.job_id)

        assert outcome.ok
        assert outcome.result == {"count": 3, "items": [1, 2, 3]}
        assert job.status == JobStatus.COMPLETED
        assert job.metadata["action"] == "x"
        assert job.metadata["result"]["count"] == 3
        assert any(entry.message == "Processing: Acme" for entry in job.activity_log)

    @pytest.mark.asyncio
    async def test_failure_fails_job(self, ctx):
        async def runner(ctx, reporter):
            raise RuntimeError("source exploded")

        outcome = await run_stage(ctx, JobType.SCRAPE, runner)

        assert not outcome.ok
        assert outcome.error == "source exploded"
        assert ctx.tracker.get(outcome.job_id).status == JobStatus.FAILED

    def test_reporter_without_job_is_noop(self):
        reporter = StageReporter()
        reporter.progress(1, 2)
        reporter.activity("ignored")
        assert not reporter.active


class TestFullPipeline:
    """Tests for run_full_pipeline()."""

    @pytest.mark.asyncio
    async def test_runs_all_stages(self, ctx):
        seed(ctx, "acme", name="Acme", description="Sales automation platform for business teams")
        outcome = await run_full_pipeline(ctx)

        assert outcome.ok
        assert list(outcome.stages) == ["scrape", "assess", "score", "enrich", "cleanup"]
        parent = ctx.tracker.get(outcome.job_id)
        assert parent.status == JobStatus.COMPLETED
        assert parent.metadata["stages"]["assess"] == outcome.stages["assess"].job_id

        child = ctx.tracker.get(outcome.stages["scrape"].job_id)
        assert child.metadata["parent_job_id"] == parent.id
        assert child.metadata["stage"] == "scrape"
        assert ctx.entities.get_by_slug("acme").viability_score == 0.4

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self, ctx):
        calls = []

        async def ok(ctx, reporter):
            calls.append("ok")
            return 0

        async def broken(ctx, reporter):
            raise RuntimeError("classifier quota")

        steps = [
            ("scrape", JobType.SCRAPE, ok),
            ("assess", JobType.ASSESS, broken),
            ("enrich", JobType.ENRICH, ok),
        ]
        outcome = await run_full_pipeline(ctx, steps)

        assert not outcome.ok
        assert outcome.failed_stage == "assess"
        assert calls == ["ok"]
        assert "enrich" not in outcome.stages
        parent = ctx.tracker.get(outcome.job_id)
        assert parent.status == JobStatus.FAILED
        assert parent.metadata["failed_stage"] == "assess"
        assert "classifier quota" in parent.error_message


# ── Actions and CLI ──────────────────────────────────────────


class TestActions:
    """Tests for run_action() and the CLI."""

    @pytest.mark.asyncio
    async def test_unknown_action(self, ctx):
        with pytest.raises(UnknownActionError):
            await run_action(ctx, "launch-rockets")

    @pytest.mark.asyncio
    async def test_cleanup_identify(self, ctx):
        seed(ctx, "nosite", website=None)
        result = await run_action(ctx, "cleanup-identify")

        assert result["ok"] is True
        assert result["result"]["count"] == 1
        assert result["job_type"] == "cleanup"

    def test_cli_prune_then_jobs(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))
        monkeypatch.setenv("LLM_API_KEY", "")
        sources = tmp_path / "missing.yaml"

        main(["cleanup-prune", "--sources", str(sources)])
        result = json.loads(capsys.readouterr().out)
        assert result["ok"] is True
        assert result["result"] == {"count": 0}

        main(["jobs", "--type", "cleanup", "--sources", str(sources)])
        listed = json.loads(capsys.readouterr().out)
        assert len(listed["jobs"]) == 1
        assert listed["jobs"][0]["status"] == "completed"

    def test_cli_broken_sources_exits(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.db"))
        sources = tmp_path / "sources.yaml"
        sources.write_text("sources: [unclosed\n")

        with pytest.raises(SystemExit) as exc:
            main(["cleanup-prune", "--sources", str(sources)])
        assert exc.value.code == 1
