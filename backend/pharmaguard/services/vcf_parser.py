"""
vcf_parser.py — VCF ingestion service.

Accepts raw VCF bytes, decoded text, or a filesystem path.
Gzip input is inflated with a cap on the decoded size.
Runs the structural check (all failures collected in one pass), then hands
the text to variant_extractor.
Raises VCFParseError, carrying the full error list, for a structurally
invalid file. Individual malformed rows are never errors; the extractor
skips them.
"""

from __future__ import annotations

import gzip
import io
import logging
import zlib
from pathlib import Path

from pharmaguard.config import MAX_VCF_SIZE_BYTES
from pharmaguard.models.domain import ExtractionMetadata, ValidationReport, VariantRecord
from pharmaguard.services.variant_extractor import extract_variants
from pharmaguard.utils.exceptions import FileValidationError, VCFParseError

logger = logging.getLogger(__name__)

FILEFORMAT_PREFIX = "##fileformat=VCF"
COLUMN_HEADER_PREFIX = "#CHROM"

_GZIP_MAGIC = b"\x1f\x8b"


# ---------------------------------------------------------------------------
# Public data structure
# ---------------------------------------------------------------------------

class ParseResult:
    """Container returned by parse_vcf_text / parse_vcf_bytes / parse_vcf_path."""

    __slots__ = ("variants", "metadata", "success")

    def __init__(
        self,
        variants: list[VariantRecord],
        metadata: ExtractionMetadata,
        success: bool = True,
    ) -> None:
        self.variants = variants
        self.metadata = metadata
        self.success = success

    @property
    def variant_count(self) -> int:
        return len(self.variants)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _content_lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line.strip()]


def validate_vcf(text: str) -> ValidationReport:
    """
    Structural sanity check of raw VCF text.

    Collects every failure instead of stopping at the first one so the
    caller gets a complete diagnostic list. Row shape is not checked here.
    """
    lines = _content_lines(text)
    if not lines:
        return ValidationReport(valid=False, errors=["Empty VCF file"])

    errors: list[str] = []

    if not any(line.startswith(FILEFORMAT_PREFIX) for line in lines):
        errors.append(
            "Missing ##fileformat=VCF header. File may not be a valid VCF v4.2 file."
        )

    if not any(line.startswith(COLUMN_HEADER_PREFIX) for line in lines):
        errors.append("Missing #CHROM header line")

    if not any(not line.startswith("#") for line in lines):
        errors.append("No variant data found in VCF file")

    return ValidationReport(valid=not errors, errors=errors)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _gunzip(vcf_bytes: bytes, max_size: int | None) -> bytes:
    """Inflate gzip content, reading at most one byte past *max_size*."""
    try:
        with gzip.GzipFile(fileobj=io.BytesIO(vcf_bytes)) as stream:
            return stream.read(-1 if max_size is None else max_size + 1)
    except (OSError, EOFError, zlib.error) as exc:
        raise VCFParseError(
            "Could not decompress VCF file",
            errors=[f"Corrupt gzip stream: {exc}"],
        ) from exc


def decode_vcf_bytes(vcf_bytes: bytes, max_size: int | None = MAX_VCF_SIZE_BYTES) -> str:
    """
    Decode uploaded bytes to text, inflating gzip content first.

    Raises:
        FileValidationError: If the content, once inflated, exceeds *max_size* bytes.
        VCFParseError: If the gzip stream is corrupt.
    """
    if vcf_bytes[:2] == _GZIP_MAGIC:
        vcf_bytes = _gunzip(vcf_bytes, max_size)
    if max_size is not None and len(vcf_bytes) > max_size:
        logger.warning("Decoded VCF content exceeds %d bytes", max_size)
        raise FileValidationError(
            f"File too large once decompressed. Maximum decoded size is {max_size} bytes."
        )
    # utf-8-sig drops a leading BOM
    return vcf_bytes.decode("utf-8-sig", errors="replace")


def parse_vcf_text(text: str) -> ParseResult:
    """
    Validate and extract pharmacogenomic variants from VCF text.

    Raises:
        VCFParseError: If structural validation fails.
    """
    report = validate_vcf(text)
    if not report.valid:
        logger.warning("VCF validation failed: %s", "; ".join(report.errors))
        raise VCFParseError(errors=report.errors)

    extraction = extract_variants(text)
    logger.info(
        "Parsed %d data rows, %d pharmacogenomic variants across genes %s",
        extraction.metadata.total_variants,
        extraction.metadata.pharmacogenomic_variants,
        extraction.metadata.genes,
    )
    return ParseResult(
        variants=extraction.variants,
        metadata=extraction.metadata,
    )


def parse_vcf_bytes(vcf_bytes: bytes, max_size: int | None = MAX_VCF_SIZE_BYTES) -> ParseResult:
    """
    Parse a VCF file from raw bytes.

    Args:
        vcf_bytes: Raw bytes of the VCF file (plain or gzip-compressed).
        max_size: Limit on the decoded size in bytes; None disables it.

    Returns:
        ParseResult with variant list and extraction metadata.

    Raises:
        VCFParseError: If the content is not a valid VCF.
        FileValidationError: If the decoded content exceeds *max_size*.
    """
    if not vcf_bytes:
        raise VCFParseError(errors=["Empty VCF file"])
    return parse_vcf_text(decode_vcf_bytes(vcf_bytes, max_size))


def parse_vcf_path(
    file_path: str | Path,
    max_size: int | None = MAX_VCF_SIZE_BYTES,
) -> ParseResult:
    """
    Parse a VCF file from a filesystem path.

    Raises:
        VCFParseError: If the file cannot be found or fails validation.
    """
    path = Path(file_path)
    if not path.exists():
        raise VCFParseError(f"VCF file not found: {file_path}")

    logger.info("Reading VCF from %s", path.name)
    return parse_vcf_bytes(path.read_bytes(), max_size)
