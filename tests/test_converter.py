import asyncio
from pathlib import Path

import pytest

from fakes import FakePlaywright
from markdown2pdf import converter as converter_module
from markdown2pdf.config import Config
from markdown2pdf.converter import MarkdownToPDFConverter, create_pdf_from_markdown, main, scoped_html_file
from markdown2pdf.errors import (
    ConversionError,
    DiagramRenderError,
    PostConditionError,
    RequestValidationError,
)
from markdown2pdf.renderer import PDFRenderer
from markdown2pdf.request import ConversionRequest, PaperSpec


def make_converter(fake, **config):
    renderer = PDFRenderer(render_delay_ms=10, load_timeout_ms=1000, playwright_factory=fake)
    return MarkdownToPDFConverter(Config(config), renderer=renderer, show_progress=False)


def convert(converter, request):
    return asyncio.run(converter.convert(request))


def test_debug_mode_prints_effective_configuration(home, fake_playwright, capsys):
    renderer = PDFRenderer(render_delay_ms=10, load_timeout_ms=1000, playwright_factory=fake_playwright)

    MarkdownToPDFConverter(Config({"render_delay_ms": 10}), renderer=renderer, debug=True, show_progress=False)

    out = capsys.readouterr().out
    assert "[DEBUG]" in out
    assert "Configuration:" in out
    assert "'render_delay_ms': 10" in out


def test_default_scenario_writes_output_pdf_in_home(home, fake_playwright):
    request = ConversionRequest(markdown="# Title\n\nHello **world**")

    result = convert(make_converter(fake_playwright), request)

    assert result == home / "output.pdf"
    assert result.is_file()
    page = fake_playwright.page
    assert "<h1>Title</h1>" in page.html
    assert "<strong>world</strong>" in page.html
    assert "size: 8.5in 11in;" in page.html
    assert "margin: 20mm;" in page.html
    assert 'class="watermark"' not in page.html
    assert page.pdf_options["format"] == "Letter"
    assert page.pdf_options["display_header_footer"] is False


def test_repeated_conversions_get_incrementing_suffixes(home, chromium_binary):
    request = ConversionRequest(markdown="# Same")

    paths = [convert(make_converter(FakePlaywright(chromium_binary)), request) for _ in range(3)]

    assert [p.name for p in paths] == ["output.pdf", "output-1.pdf", "output-2.pdf"]
    assert all(p.is_file() for p in paths)


def test_existing_output_gets_suffix(home, fake_playwright):
    (home / "output.pdf").write_bytes(b"existing")

    result = convert(make_converter(fake_playwright), ConversionRequest(markdown="x"))

    assert result == home / "output-1.pdf"
    assert (home / "output.pdf").read_bytes() == b"existing"


def test_temp_file_removed_after_success(home, fake_playwright):
    convert(make_converter(fake_playwright), ConversionRequest(markdown="x"))

    html_path = fake_playwright.page.html_path
    assert html_path.name.endswith(".html")
    assert html_path.parent != home
    assert not html_path.exists()


def test_watermark_round_trip(home, chromium_binary):
    fake = FakePlaywright(chromium_binary)

    convert(make_converter(fake), ConversionRequest(markdown="body", watermark="DRAFT"))

    page = fake.page
    assert '<div class="watermark">DRAFT</div>' in page.html
    assert page.pdf_options["display_header_footer"] is True
    assert "DRAFT" in page.pdf_options["header_template"]
    assert "DRAFT" in page.pdf_options["footer_template"]


def test_output_directory_is_created(home, fake_playwright, tmp_path):
    target = tmp_path / "nested" / "dirs" / "report"

    result = convert(make_converter(fake_playwright), ConversionRequest(markdown="x", output_filename=str(target)))

    assert result == tmp_path / "nested" / "dirs" / "report.pdf"
    assert result.is_file()


def test_config_output_dir_overrides_request_path(home, fake_playwright, tmp_path):
    override = tmp_path / "override"
    converter = make_converter(fake_playwright, output_dir=str(override))

    result = convert(converter, ConversionRequest(markdown="x", output_filename=str(tmp_path / "elsewhere" / "a.pdf")))

    assert result == override / "a.pdf"


def test_environment_output_dir(home, fake_playwright, tmp_path, monkeypatch):
    monkeypatch.setenv("M2P_OUTPUT_DIR", str(tmp_path / "from-env"))

    result = convert(make_converter(fake_playwright), ConversionRequest(markdown="x", output_filename="doc"))

    assert result == tmp_path / "from-env" / "doc.pdf"


def test_invalid_diagram_fails_without_pdf(home, chromium_binary):
    fake = FakePlaywright(chromium_binary, diagram_error="Parse error on line 2: graph TD A-- B")
    request = ConversionRequest(markdown="```mermaid\ngraph TD A-- B\n```\n")

    with pytest.raises(DiagramRenderError) as excinfo:
        convert(make_converter(fake), request)

    error = excinfo.value
    assert "diagram" in error.message.lower()
    assert "Parse error on line 2" in error.message
    assert error.details["output_path"] == str(home / "output.pdf")
    assert error.details["paper_format"] == "letter"
    assert error.details["paper_orientation"] == "portrait"
    assert list(home.glob("*.pdf")) == []
    assert not fake.page.html_path.exists()
    assert fake.browsers[0].closed


def test_missing_pdf_after_export_is_post_condition_error(home, chromium_binary):
    fake = FakePlaywright(chromium_binary, write_pdf=False)

    with pytest.raises(PostConditionError) as excinfo:
        convert(make_converter(fake), ConversionRequest(markdown="x"))

    assert excinfo.value.phase == "verify"
    assert excinfo.value.details["output_path"] == str(home / "output.pdf")
    assert not fake.page.html_path.exists()


def test_unexpected_failure_is_wrapped_with_phase(home, fake_playwright):
    class BrokenTransformer:
        def render(self, markdown):
            raise RuntimeError("parser exploded")

    converter = make_converter(fake_playwright)
    converter.transformer = BrokenTransformer()

    with pytest.raises(ConversionError) as excinfo:
        convert(converter, ConversionRequest(markdown="x"))

    assert excinfo.value.phase == "markup"
    assert "parser exploded" in excinfo.value.message
    assert excinfo.value.details["name"] == "RuntimeError"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert fake_playwright.sessions == 0


def test_scoped_html_file_removed_on_error():
    with pytest.raises(RuntimeError):
        with scoped_html_file("<html></html>") as path:
            assert path.read_text(encoding="utf-8") == "<html></html>"
            raise RuntimeError("boom")

    assert not path.exists()


def test_create_pdf_from_markdown_confirmation(home, fake_playwright):
    text = asyncio.run(create_pdf_from_markdown(
        {"markdown": "# Hi", "outputFilename": "hello", "paperFormat": "a4"},
        converter=make_converter(fake_playwright),
    ))

    assert str(home / "hello.pdf") in text
    assert "format: a4" in text


def test_create_pdf_from_markdown_rejects_bad_watermark_before_rendering(home, fake_playwright):
    with pytest.raises(RequestValidationError):
        asyncio.run(create_pdf_from_markdown(
            {"markdown": "# Hi", "watermark": "draft"},
            converter=make_converter(fake_playwright),
        ))

    assert fake_playwright.sessions == 0
    assert list(home.glob("*.pdf")) == []


@pytest.fixture
def cli(home, fake_playwright, monkeypatch):
    """Runs main() against the fake browser."""
    monkeypatch.setattr(converter_module.signal, "signal", lambda *args: None)
    monkeypatch.setattr(
        converter_module, "PDFRenderer",
        lambda **kwargs: PDFRenderer(**{**kwargs, "playwright_factory": fake_playwright}),
    )
    return main


def test_cli_converts_file(cli, tmp_path, capsys, fake_playwright):
    md_file = tmp_path / "notes.md"
    md_file.write_text("# Notes\n\n![fig](fig.png)\n", encoding="utf-8")
    out_dir = tmp_path / "pdfs"

    cli([str(md_file), "--output-dir", str(out_dir), "--format", "a5", "--watermark", "DRAFT",
         "--render-delay", "0", "--no-progress"])

    printed = capsys.readouterr().out.strip().splitlines()[-1]
    assert Path(printed) == out_dir / "notes.pdf"
    assert (out_dir / "notes.pdf").is_file()
    assert f'<base href="{tmp_path.resolve().as_uri()}/">' in fake_playwright.page.html
    assert ("wait_for_timeout", 0) in fake_playwright.page.calls


def test_cli_reports_validation_error(cli, tmp_path, capsys):
    md_file = tmp_path / "notes.md"
    md_file.write_text("x", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli([str(md_file), "--watermark", "lowercase", "--no-progress"])

    assert excinfo.value.code == 1
    assert '"phase": "validate"' in capsys.readouterr().err


def test_cli_requires_input(cli):
    with pytest.raises(SystemExit) as excinfo:
        cli([])

    assert excinfo.value.code == 2
