"""Office document to PDF conversion through headless LibreOffice."""

from __future__ import annotations

import logging
import subprocess
import tempfile
from io import BytesIO
from pathlib import Path, PurePath

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from apps.api.app.core.config import Settings
from isms_app.headless_display import (
    VirtualDisplayError,
    ensure_virtual_display,
    virtual_display_environment,
)

logger = logging.getLogger(__name__)

CONVERTIBLE_EXTENSIONS = frozenset(
    {"docx", "doc", "xlsx", "xls", "pptx", "ppt", "odt", "ods", "odp", "rtf", "txt"}
)


class DocumentConversionError(RuntimeError):
    pass


def _extension(filename: str) -> str:
    return PurePath(filename).suffix.lower().lstrip(".")


def is_convertible(filename: str) -> bool:
    return _extension(filename) in CONVERTIBLE_EXTENSIONS


def _safe_filename(filename: str) -> str:
    # Drop any client-supplied directory components.
    name = PurePath(filename.replace("\\", "/")).name
    return name or f"upload.{_extension(filename) or 'bin'}"


def _page_count(pdf_bytes: bytes) -> int:
    try:
        page_count = len(PdfReader(BytesIO(pdf_bytes)).pages)
    except PdfReadError as exc:
        raise DocumentConversionError(f"conversion produced an unreadable PDF: {exc}") from exc
    if page_count == 0:
        raise DocumentConversionError("conversion produced an empty PDF")
    return page_count


def convert_to_pdf(content: bytes, filename: str, *, settings: Settings) -> bytes:
    """Convert an office document to PDF and return the PDF bytes.

    LibreOffice needs an X display even in headless mode on some platforms,
    so the virtual display is started on first use.
    """
    if not is_convertible(filename):
        raise DocumentConversionError(f"unsupported file type: {filename}")

    try:
        ensure_virtual_display(
            display=settings.virtual_display,
            screen=settings.virtual_display_screen,
            binary=settings.xvfb_binary,
            startup_wait_seconds=settings.xvfb_startup_seconds,
        )
    except VirtualDisplayError as exc:
        # soffice --headless can still succeed without X on most hosts.
        logger.warning("Virtual display unavailable: %s", exc)

    with tempfile.TemporaryDirectory(prefix="isms-convert-") as workdir:
        source_path = Path(workdir) / _safe_filename(filename)
        source_path.write_bytes(content)
        command = [
            settings.libreoffice_binary,
            "--headless",
            "--convert-to",
            "pdf",
            "--outdir",
            workdir,
            str(source_path),
        ]
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                timeout=settings.conversion_timeout_seconds,
                env=virtual_display_environment(settings.virtual_display),
                check=False,
            )
        except FileNotFoundError as exc:
            raise DocumentConversionError(
                f"{settings.libreoffice_binary} is not installed"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise DocumentConversionError(
                f"conversion timed out after {settings.conversion_timeout_seconds:g}s"
            ) from exc

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise DocumentConversionError(
                f"conversion failed with exit code {completed.returncode}: {stderr}"
            )

        output_path = source_path.with_suffix(".pdf")
        if not output_path.exists():
            raise DocumentConversionError("conversion produced no PDF output")
        pdf_bytes = output_path.read_bytes()

    page_count = _page_count(pdf_bytes)
    logger.info(
        "Converted %s to PDF (%d pages, %d bytes)", source_path.name, page_count, len(pdf_bytes)
    )
    return pdf_bytes
