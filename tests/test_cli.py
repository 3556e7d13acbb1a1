"""Tests for the Supacrawl CLI commands."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from supacrawl.errors import RequestFailed, Unauthorized
from supacrawl.extraction.client import ExtractionClient
from supacrawl.extraction.models import CrawlJob, CrawlStatus, ScrapeResult
from supacrawl.session import SessionController
from supacrawl.speech.audio import AudioHandle
from supacrawl.speech.synthesizer import SpeechSynthesizer
from supacrawl_cli.main import app

runner = CliRunner()

_SCRAPE_BODY = {
    "success": True,
    "data": {
        "markdown": "# Hello",
        "metadata": {"title": "Example Domain", "description": "An example page"},
    },
}


@pytest.fixture
def mocks():
    """Patch controller construction so commands talk to mocked clients."""
    extraction = MagicMock(spec=ExtractionClient)
    synthesizer = MagicMock(spec=SpeechSynthesizer)
    synthesizer.synthesize.side_effect = lambda text: AudioHandle(data=b"ID3audio")
    built: list[SessionController] = []

    def _build(settings, player=None):
        controller = SessionController(
            extraction, synthesizer, player=player, poll_wait=lambda delay: False
        )
        built.append(controller)
        return controller

    with patch("supacrawl_cli.main.build_controller", side_effect=_build):
        yield extraction, synthesizer, built


def test_scrape_prints_summary(mocks):
    extraction, _, _ = mocks
    extraction.scrape_one.return_value = ScrapeResult.from_wire(_SCRAPE_BODY)

    result = runner.invoke(app, ["scrape", "--url", "https://example.com"])

    assert result.exit_code == 0, result.output
    assert "Title       : Example Domain" in result.output
    assert "Description : An example page" in result.output
    assert "# Hello" in result.output


def test_scrape_json_output(mocks):
    extraction, _, _ = mocks
    extraction.scrape_one.return_value = ScrapeResult.from_wire(_SCRAPE_BODY)

    result = runner.invoke(app, ["scrape", "--url", "https://example.com", "--json"])

    assert result.exit_code == 0, result.output
    assert '"markdown": "# Hello"' in result.output
    assert '"kind"' not in result.output


def test_scrape_error_exits_1(mocks):
    extraction, _, built = mocks
    extraction.scrape_one.side_effect = RequestFailed("Payment required", status=402)

    result = runner.invoke(app, ["scrape", "--url", "https://example.com"])

    assert result.exit_code == 1
    assert "Payment required" in result.output
    extraction.close.assert_called_once()


def test_crawl_reports_progress_and_summary(mocks):
    extraction, _, _ = mocks
    extraction.start_crawl.return_value = CrawlJob(id="job-1")
    extraction.crawl_status.side_effect = [
        CrawlStatus.from_wire({"status": "scraping", "total": 3, "completed": 1}),
        CrawlStatus.from_wire({
            "status": "completed",
            "total": 3,
            "completed": 3,
            "creditsUsed": 3,
            "data": [
                {"metadata": {"title": "Home", "sourceURL": "https://example.com"}},
                {"metadata": {"title": "About"}},
                {"metadata": {}},
            ],
        }),
    ]

    result = runner.invoke(app, ["crawl", "--url", "https://example.com"])

    assert result.exit_code == 0, result.output
    assert "scraping … 1/3 pages" in result.output
    assert "Pages   : 3/3" in result.output
    assert "Credits : 3" in result.output
    assert "Home  <https://example.com>" in result.output
    assert "(untitled)" in result.output


def test_crawl_failed_exits_1(mocks):
    extraction, _, _ = mocks
    extraction.start_crawl.return_value = CrawlJob(id="job-1")
    extraction.crawl_status.side_effect = [CrawlStatus.from_wire({"status": "failed"})]

    result = runner.invoke(app, ["crawl", "--url", "https://example.com"])

    assert result.exit_code == 1
    assert "Crawl failed" in result.output


def test_crawl_unbounded_switches_policy(mocks):
    extraction, _, built = mocks
    extraction.start_crawl.return_value = CrawlJob(id="job-1")
    extraction.crawl_status.side_effect = [CrawlStatus.from_wire({"status": "completed"})]

    result = runner.invoke(app, ["crawl", "--url", "https://example.com", "--unbounded"])

    assert result.exit_code == 0, result.output
    policy = built[0].poll_policy
    assert policy.timeout is None
    assert policy.max_attempts is None


def test_speak_writes_audio_file(mocks, tmp_path):
    extraction, synthesizer, _ = mocks
    extraction.scrape_one.return_value = ScrapeResult.from_wire(_SCRAPE_BODY)
    out = tmp_path / "out.mp3"

    result = runner.invoke(app, ["speak", "--url", "https://example.com", "--output", str(out)])

    assert result.exit_code == 0, result.output
    assert out.read_bytes() == b"ID3audio"
    synthesizer.synthesize.assert_called_once_with("An example page")
    assert f"Audio written to {out}" in result.output


def test_speak_from_crawl_uses_first_page(mocks, tmp_path):
    extraction, synthesizer, _ = mocks
    extraction.start_crawl.return_value = CrawlJob(id="job-1")
    extraction.crawl_status.side_effect = [
        CrawlStatus.from_wire({
            "status": "completed",
            "data": [{"metadata": {"description": "first"}}, {"metadata": {"description": "second"}}],
        })
    ]
    out = tmp_path / "out.mp3"

    result = runner.invoke(
        app, ["speak", "--url", "https://example.com", "--crawl", "--output", str(out)]
    )

    assert result.exit_code == 0, result.output
    synthesizer.synthesize.assert_called_once_with("first")


def test_speak_unauthorized_exits_1(mocks, tmp_path):
    extraction, synthesizer, _ = mocks
    extraction.scrape_one.return_value = ScrapeResult.from_wire(_SCRAPE_BODY)
    synthesizer.synthesize.side_effect = Unauthorized("Invalid API key")
    out = tmp_path / "out.mp3"

    result = runner.invoke(app, ["speak", "--url", "https://example.com", "--output", str(out)])

    assert result.exit_code == 1
    assert "Invalid API key" in result.output
    assert not out.exists()


def test_speak_without_description_exits_1(mocks, tmp_path):
    extraction, synthesizer, _ = mocks
    extraction.scrape_one.return_value = ScrapeResult.from_wire(
        {"success": True, "data": {"markdown": "no metadata"}}
    )

    result = runner.invoke(
        app, ["speak", "--url", "https://example.com", "--output", str(tmp_path / "o.mp3")]
    )

    assert result.exit_code == 1
    assert "No text available to convert to speech" in result.output
    synthesizer.synthesize.assert_not_called()


def test_serve_runs_uvicorn():
    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(app, ["serve", "--port", "9001"])

    assert result.exit_code == 0, result.output
    mock_run.assert_called_once_with(
        "supacrawl.api.app:app", host="127.0.0.1", port=9001, reload=False
    )
