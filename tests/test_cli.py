"""Tests for the command line interface."""
import json

from typer.testing import CliRunner

from conftest import delta_event, sse_event
from streamchat.cli.app import app

runner = CliRunner()


class TestRenderCommand:
    """Tests for 'streamchat render'."""

    def test_renders_markdown_with_sources(self, tmp_path):
        text = tmp_path / "reply.md"
        text.write_text("See link [1] and `code`")
        sources = tmp_path / "sources.json"
        sources.write_text(json.dumps([{"url": "http://a"}]))

        result = runner.invoke(app, ["render", str(text), "--sources", str(sources)])

        assert result.exit_code == 0
        assert 'href="http://a"' in result.output
        assert '<code class="inline-code">code</code>' in result.output

    def test_invalid_sources_file(self, tmp_path):
        text = tmp_path / "reply.md"
        text.write_text("hi")
        sources = tmp_path / "sources.json"
        sources.write_text('{"url": "http://a"}')

        result = runner.invoke(app, ["render", str(text), "-s", str(sources)])

        assert result.exit_code == 1
        assert "invalid sources file" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["render", str(tmp_path / "missing.md")])

        assert result.exit_code != 0


class TestDecodeCommand:
    """Tests for 'streamchat decode'."""

    def test_prints_events(self, tmp_path):
        body = tmp_path / "body.txt"
        body.write_text(sse_event("[]", name="sources") + delta_event("Hi") + sse_event("[DONE]"))

        result = runner.invoke(app, ["decode", str(body)])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0] == "sources []"
        assert lines[1].startswith("message {")
        assert lines[2] == "message [DONE]"


class TestChatCommand:
    """Tests for 'streamchat chat' argument handling."""

    def test_unsupported_attachment(self, tmp_path):
        image = tmp_path / "photo.png"
        image.write_bytes(b"\x89PNG")

        result = runner.invoke(app, ["chat", "hello", "--attach", str(image)])

        assert result.exit_code == 1
        assert "not a supported file type" in result.output
