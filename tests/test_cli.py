import httpx
from typer.testing import CliRunner

from review_probe import cli
from review_probe.config import Settings
from review_probe.context import AppContext
from review_probe.event_logger import WEBHOOK_URL_KEY
from review_probe.interpret import NounLevelResult, SentimentResult
from review_probe.state_store import StateStore

runner = CliRunner()
WEBHOOK = "https://script.google.com/macros/s/abc123/exec"


def _patch_context(monkeypatch, tmp_path, handler):
    dataset = tmp_path / "reviews_test.tsv"
    dataset.write_text("text\nSolid build quality\n", encoding="utf-8")
    settings = Settings(REVIEWS_SOURCE=str(dataset), STATE_PATH=tmp_path / "state.json")
    store = StateStore(settings.state_path)

    def fake_context():
        return AppContext(
            settings=settings,
            store=store,
            http=httpx.Client(transport=httpx.MockTransport(handler)),
        )

    monkeypatch.setattr(cli, "_context", fake_context)
    return store


def test_format_sentiment_and_noun_level():
    assert "Positive" in cli._format_sentiment(SentimentResult(kind="positive", score=0.912))
    assert "91.2%" in cli._format_sentiment(SentimentResult(kind="positive", score=0.912))
    assert "—" in cli._format_sentiment(SentimentResult(kind="neutral"))
    assert "(medium, 9 nouns)" in cli._format_noun_level(NounLevelResult("medium", 9))


def test_pick_prints_review(monkeypatch, tmp_path):
    _patch_context(monkeypatch, tmp_path, lambda r: httpx.Response(200))
    result = runner.invoke(cli.app, ["pick"])
    assert result.exit_code == 0
    assert "Solid build quality" in result.output


def test_analyze_random_review(monkeypatch, tmp_path):
    _patch_context(
        monkeypatch,
        tmp_path,
        lambda r: httpx.Response(200, json=[[{"label": "POSITIVE", "score": 0.95}]]),
    )
    result = runner.invoke(cli.app, ["analyze"])
    assert result.exit_code == 0
    assert "Positive" in result.output
    assert "Done." in result.output


def test_analyze_rate_limit_exits_nonzero(monkeypatch, tmp_path):
    _patch_context(monkeypatch, tmp_path, lambda r: httpx.Response(402))
    result = runner.invoke(cli.app, ["analyze", "--text", "hello"])
    assert result.exit_code == 1
    assert "rate limit" in result.output


def test_nouns_with_text(monkeypatch, tmp_path):
    _patch_context(
        monkeypatch, tmp_path, lambda r: httpx.Response(200, json=[{"label": "high"}])
    )
    result = runner.invoke(cli.app, ["nouns", "--text", "many many nouns"])
    assert result.exit_code == 0
    assert "high" in result.output


def test_save_url_rejects_invalid(monkeypatch, tmp_path):
    store = _patch_context(monkeypatch, tmp_path, lambda r: httpx.Response(200))
    result = runner.invoke(cli.app, ["save-url", "http://x/y"])
    assert result.exit_code == 1
    assert store.get(WEBHOOK_URL_KEY) is None


def test_save_url_then_log_shortcut(monkeypatch, tmp_path):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request.content.decode())
        return httpx.Response(200)

    _patch_context(monkeypatch, tmp_path, handler)
    assert runner.invoke(cli.app, ["save-url", WEBHOOK]).exit_code == 0

    result = runner.invoke(cli.app, ["log", "cta-b"])
    assert result.exit_code == 0
    assert "Logged" in result.output
    assert "event=cta_click" in sent[0]
    assert "variant=B" in sent[0]


def test_log_without_url_fails(monkeypatch, tmp_path):
    _patch_context(monkeypatch, tmp_path, lambda r: httpx.Response(200))
    result = runner.invoke(cli.app, ["log", "heartbeat"])
    assert result.exit_code == 1
    assert "Missing Web App URL" in result.output


def test_whoami_creates_id(monkeypatch, tmp_path):
    _patch_context(monkeypatch, tmp_path, lambda r: httpx.Response(200))
    result = runner.invoke(cli.app, ["whoami"])
    assert result.exit_code == 0
    assert "userId: u_" in result.output


def test_analyze_with_nouns_reports_noun_failure(monkeypatch, tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("bert-base-uncased"):
            return httpx.Response(429)
        return httpx.Response(200, json=[[{"label": "POSITIVE", "score": 0.95}]])

    _patch_context(monkeypatch, tmp_path, handler)
    result = runner.invoke(cli.app, ["analyze", "--text", "hello", "--nouns"])

    assert result.exit_code == 1
    assert "Positive" in result.output
    assert "rate limit" in result.output
    assert "Done." not in result.output


def test_analyze_with_nouns_prints_both(monkeypatch, tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("bert-base-uncased"):
            return httpx.Response(200, json=[{"label": "low"}])
        return httpx.Response(200, json=[[{"label": "NEGATIVE", "score": 0.8}]])

    _patch_context(monkeypatch, tmp_path, handler)
    result = runner.invoke(cli.app, ["analyze", "--text", "hello", "--nouns"])

    assert result.exit_code == 0
    assert "Negative" in result.output
    assert "(low)" in result.output
    assert "Done." in result.output
