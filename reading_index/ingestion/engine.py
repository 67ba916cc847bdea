from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

from .models import ExtractionResult

logger = logging.getLogger(__name__)


class ExtractionError(RuntimeError):
    """
    Raised when a PDF cannot be read or decoded. Extraction is all-or-nothing.
    """


class ExtractionEngine:
    """
    Abstract text extraction engine. Implementations should be stateless and reusable.
    """

    name = "base"

    def extract(self, pdf_path: Path) -> ExtractionResult:
        try:
            data = Path(pdf_path).read_bytes()
        except OSError as exc:
            logger.error("Error reading %s: %s", pdf_path, exc)
            raise ExtractionError(f"cannot read {pdf_path}: {exc}") from exc

        try:
            return self._decode(data, Path(pdf_path))
        except Exception as exc:  # noqa: BLE001
            logger.error("Error extracting text from %s: %s", pdf_path, exc)
            raise ExtractionError(f"cannot decode {pdf_path}: {exc}") from exc

    def _decode(self, data: bytes, pdf_path: Path) -> ExtractionResult:
        raise NotImplementedError


class PypdfExtractionEngine(ExtractionEngine):
    """
    Pure-Python extraction with pypdf. Page texts are joined with newlines.
    """

    name = "pypdf"

    def _decode(self, data: bytes, pdf_path: Path) -> ExtractionResult:
        from pypdf import PdfReader

        reader = PdfReader(BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
        return ExtractionResult(text="\n".join(pages), page_count=len(pages))


class PyMuPdfExtractionEngine(ExtractionEngine):
    name = "pymupdf"

    def _decode(self, data: bytes, pdf_path: Path) -> ExtractionResult:
        import fitz  # PyMuPDF

        doc = fitz.open(stream=data, filetype="pdf")
        try:
            pages = [page.get_text() for page in doc]
            return ExtractionResult(text="\n".join(pages), page_count=doc.page_count)
        finally:
            doc.close()


class DoclingExtractionEngine(ExtractionEngine):
    """
    Docling-based extraction. Slower than the other engines but handles
    scanned readings when OCR is enabled.

    Requires the optional `docling` extra.
    """

    name = "docling"

    def __init__(self, perform_ocr: bool = False):
        try:
            from docling.datamodel.base_models import DocumentStream, InputFormat
            from docling.datamodel.pipeline_options import PdfPipelineOptions
            from docling.document_converter import DocumentConverter, PdfFormatOption
        except ImportError as exc:  # pragma: no cover - dependency guard
            raise RuntimeError("Docling is required for this engine. Please install 'reading-index[docling]'.") from exc

        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_ocr = perform_ocr
        # Plain text only; table structure and images are not stored.
        pipeline_options.do_table_structure = False
        pipeline_options.generate_picture_images = False
        pipeline_options.generate_page_images = False

        self._document_stream = DocumentStream
        self.converter = DocumentConverter(
            format_options={InputFormat.PDF: PdfFormatOption(pipeline_options=pipeline_options)}
        )

    def _decode(self, data: bytes, pdf_path: Path) -> ExtractionResult:
        source = self._document_stream(name=pdf_path.name, stream=BytesIO(data))
        result = self.converter.convert(source)
        doc = result.document
        return ExtractionResult(text=doc.export_to_text(), page_count=len(doc.pages))


ENGINES = {
    PypdfExtractionEngine.name: PypdfExtractionEngine,
    PyMuPdfExtractionEngine.name: PyMuPdfExtractionEngine,
    DoclingExtractionEngine.name: DoclingExtractionEngine,
}


def build_engine(name: str) -> ExtractionEngine:
    try:
        engine_cls = ENGINES[name]
    except KeyError:
        raise ValueError(f"Unknown extraction engine {name!r}; expected one of {', '.join(sorted(ENGINES))}") from None
    return engine_cls()
