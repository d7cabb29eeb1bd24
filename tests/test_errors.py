from markdown2pdf.errors import (
    ConversionError,
    DiagramRenderError,
    OutputPathError,
    PageLoadError,
    RequestValidationError,
)


def test_error_payload_shape():
    error = PageLoadError("Timed out", timed_out=True, details={"url": "file:///tmp/x.html"})

    assert isinstance(error, ConversionError)
    assert error.to_dict() == {
        "message": "Timed out",
        "phase": "load",
        "details": {"url": "file:///tmp/x.html"},
    }
    assert str(error) == "Timed out (phase: load)"


def test_validation_error_is_a_value_error():
    error = RequestValidationError("watermark", "too long")

    assert isinstance(error, ValueError)
    assert error.details == {"field": "watermark"}
    assert error.message == "Invalid 'watermark': too long"


def test_filesystem_error_carries_attempted_path():
    error = OutputPathError("Cannot create temporary file", "/tmp", phase="setup")

    assert error.phase == "setup"
    assert error.details["attempted_path"] == "/tmp"


def test_diagram_error_names_diagram():
    error = DiagramRenderError("Syntax error in text")

    assert error.phase == "stabilize"
    assert "Diagram" in error.message
    assert error.details["page_message"] == "Syntax error in text"
