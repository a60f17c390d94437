from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from io import BytesIO
from types import SimpleNamespace

import pytest
from pypdf import PdfReader, PdfWriter

from apps.api.app.core.config import Settings
from apps.api.app.services import document_conversion
from apps.api.app.services.document_conversion import (
    DocumentConversionError,
    convert_to_pdf,
    is_convertible,
)


def _pdf_bytes(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        libreoffice_binary="soffice",
        conversion_timeout_seconds=5.0,
        virtual_display=":99",
    )


@pytest.fixture(autouse=True)
def no_display(monkeypatch) -> list[dict]:
    calls: list[dict] = []
    monkeypatch.setattr(
        document_conversion, "ensure_virtual_display", lambda **kwargs: calls.append(kwargs)
    )
    return calls


@pytest.mark.parametrize("filename", ["policy.docx", "REGISTER.XLSX", "deck.pptx", "notes.txt"])
def test_office_extensions_are_convertible(filename: str) -> None:
    assert is_convertible(filename)


@pytest.mark.parametrize("filename", ["scan.pdf", "image.png", "archive", "script.sh"])
def test_other_extensions_are_rejected(filename: str) -> None:
    assert not is_convertible(filename)


def test_convert_runs_soffice_and_returns_pdf(monkeypatch, settings, no_display) -> None:
    seen: dict = {}

    def fake_run(command, **kwargs):
        seen["command"] = command
        seen["env"] = kwargs["env"]
        seen["timeout"] = kwargs["timeout"]
        outdir = Path(command[command.index("--outdir") + 1])
        source = Path(command[-1])
        assert source.read_bytes() == b"office bytes"
        (outdir / f"{source.stem}.pdf").write_bytes(_pdf_bytes(2))
        return SimpleNamespace(returncode=0, stderr=b"")

    monkeypatch.setattr(document_conversion.subprocess, "run", fake_run)

    pdf = convert_to_pdf(b"office bytes", "../../etc/policy.docx", settings=settings)

    assert len(PdfReader(BytesIO(pdf)).pages) == 2
    assert seen["command"][:5] == ["soffice", "--headless", "--convert-to", "pdf", "--outdir"]
    assert Path(seen["command"][-1]).name == "policy.docx"
    assert seen["env"]["DISPLAY"] == ":99"
    assert seen["timeout"] == 5.0
    assert no_display == [
        {
            "display": ":99",
            "screen": settings.virtual_display_screen,
            "binary": settings.xvfb_binary,
            "startup_wait_seconds": settings.xvfb_startup_seconds,
        }
    ]


def test_unsupported_type_raises(settings) -> None:
    with pytest.raises(DocumentConversionError, match="unsupported file type"):
        convert_to_pdf(b"%PDF", "already.pdf", settings=settings)


def test_missing_binary_raises(monkeypatch, settings) -> None:
    def fake_run(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(document_conversion.subprocess, "run", fake_run)

    with pytest.raises(DocumentConversionError, match="not installed"):
        convert_to_pdf(b"x", "a.docx", settings=settings)


def test_timeout_raises(monkeypatch, settings) -> None:
    def fake_run(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(document_conversion.subprocess, "run", fake_run)

    with pytest.raises(DocumentConversionError, match="timed out"):
        convert_to_pdf(b"x", "a.docx", settings=settings)


def test_non_zero_exit_raises(monkeypatch, settings) -> None:
    monkeypatch.setattr(
        document_conversion.subprocess,
        "run",
        lambda command, **kwargs: SimpleNamespace(
            returncode=77, stderr=b"source file could not be loaded"
        ),
    )

    with pytest.raises(DocumentConversionError, match="exit code 77"):
        convert_to_pdf(b"x", "a.docx", settings=settings)


def test_missing_output_raises(monkeypatch, settings) -> None:
    monkeypatch.setattr(
        document_conversion.subprocess,
        "run",
        lambda command, **kwargs: SimpleNamespace(returncode=0, stderr=b""),
    )

    with pytest.raises(DocumentConversionError, match="no PDF output"):
        convert_to_pdf(b"x", "a.docx", settings=settings)


def test_display_failure_does_not_block_conversion(monkeypatch, settings) -> None:
    def failing_display(**kwargs):
        raise document_conversion.VirtualDisplayError("Xvfb is not installed")

    def fake_run(command, **kwargs):
        outdir = Path(command[command.index("--outdir") + 1])
        (outdir / "a.pdf").write_bytes(_pdf_bytes())
        return SimpleNamespace(returncode=0, stderr=b"")

    monkeypatch.setattr(document_conversion, "ensure_virtual_display", failing_display)
    monkeypatch.setattr(document_conversion.subprocess, "run", fake_run)

    pdf = convert_to_pdf(b"x", "a.docx", settings=settings)

    assert len(PdfReader(BytesIO(pdf)).pages) == 1


def test_unreadable_output_raises(monkeypatch, settings) -> None:
    def fake_run(command, **kwargs):
        outdir = Path(command[command.index("--outdir") + 1])
        (outdir / "a.pdf").write_bytes(b"not really a pdf")
        return SimpleNamespace(returncode=0, stderr=b"")

    monkeypatch.setattr(document_conversion.subprocess, "run", fake_run)

    with pytest.raises(DocumentConversionError, match="unreadable PDF"):
        convert_to_pdf(b"x", "a.docx", settings=settings)


@pytest.mark.skipif(
    shutil.which("soffice") is None,
    reason="LibreOffice is not installed",
)
def test_real_conversion_of_text_file(settings) -> None:
    pdf = convert_to_pdf(b"Information security policy\n", "policy.txt", settings=settings)

    assert pdf.startswith(b"%PDF")
