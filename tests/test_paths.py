import pytest

from markdown2pdf.errors import OutputPathError
from markdown2pdf.paths import (
    ensure_directory,
    ensure_unique,
    normalize_filename,
    resolve_output_path,
    select_output_dir,
)


@pytest.mark.parametrize("name, expected", [
    ("report", "report.pdf"),
    ("report.pdf", "report.pdf"),
    ("REPORT.PDF", "REPORT.PDF"),
    ("notes.md", "notes.md.pdf"),
])
def test_normalize_filename(name, expected):
    assert normalize_filename(name) == expected


def test_default_is_home_directory(home):
    assert resolve_output_path() == home / "output.pdf"


def test_bare_filename_goes_to_home(home):
    assert resolve_output_path("summary") == home / "summary.pdf"


def test_caller_path_directory_is_used(home, tmp_path):
    requested = tmp_path / "reports" / "q3.pdf"

    assert resolve_output_path(str(requested)) == requested


def test_override_directory_wins_over_caller_path(home, tmp_path):
    override = tmp_path / "override"

    resolved = resolve_output_path(str(tmp_path / "reports" / "q3"), str(override))

    assert resolved == override / "q3.pdf"
    assert override.is_dir()
    assert not (tmp_path / "reports").exists()


def test_relative_caller_path_resolves_against_cwd(home, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert select_output_dir("out/doc.pdf") == tmp_path / "out"


def test_missing_directories_are_created(home, tmp_path):
    requested = tmp_path / "a" / "b" / "c" / "doc"

    resolved = resolve_output_path(str(requested))

    assert resolved.parent.is_dir()
    assert resolved.name == "doc.pdf"


def test_directory_creation_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(OutputPathError) as excinfo:
        ensure_directory(blocker / "sub")

    assert excinfo.value.details["attempted_path"] == str(blocker / "sub")
    assert excinfo.value.phase == "resolve"


def test_ensure_unique_returns_free_path_untouched(tmp_path):
    assert ensure_unique(tmp_path / "doc.pdf") == tmp_path / "doc.pdf"


def test_ensure_unique_increments_suffix(tmp_path):
    (tmp_path / "doc.pdf").write_bytes(b"")
    assert ensure_unique(tmp_path / "doc.pdf") == tmp_path / "doc-1.pdf"

    (tmp_path / "doc-1.pdf").write_bytes(b"")
    assert ensure_unique(tmp_path / "doc.pdf") == tmp_path / "doc-2.pdf"


def test_ensure_unique_is_deterministic(tmp_path):
    for name in ("doc.pdf", "doc-1.pdf", "doc-3.pdf"):
        (tmp_path / name).write_bytes(b"")

    first = ensure_unique(tmp_path / "doc.pdf")
    second = ensure_unique(tmp_path / "doc.pdf")

    assert first == second == tmp_path / "doc-2.pdf"
