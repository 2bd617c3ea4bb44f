"""
variant_extractor.py — Pharmacogenomic variant extraction service.

Turns validated VCF text into VariantRecord objects for the rows that
matter pharmacogenomically, plus aggregate counts.

Gene / star allele resolution, per row:
  1. Explicit INFO tags: GENE=<symbol>, STAR=<allele>, RSID=<id>.
  2. rsID lookup in knowledge_base.RSID_MAP for whatever the tags omit.

Rows with fewer than 8 tab-separated columns, or an unparsable POS/QUAL,
are skipped without a diagnostic.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from pharmaguard.config import SUPPORTED_GENES
from pharmaguard.models.domain import (
    ExtractionMetadata,
    ExtractionResult,
    VariantRecord,
    Zygosity,
)
from pharmaguard.services.knowledge_base import RSID_MAP

logger = logging.getLogger(__name__)

MIN_COLUMNS = 8
GENOTYPE_KEY = "GT"

GENE_TAG = "GENE"
STAR_TAG = "STAR"
RSID_TAG = "RSID"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def parse_info(info: str) -> dict[str, Any]:
    """
    Parse an INFO column into a dict.

    ``KEY=VALUE`` entries split on the first ``=``; bare keys are flags
    and map to True. ``.`` or an empty column yields an empty dict.
    """
    parsed: dict[str, Any] = {}
    if not info or info == ".":
        return parsed

    for entry in info.split(";"):
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not key:
            continue
        parsed[key] = value.strip() if sep else True
    return parsed


def determine_zygosity(columns: list[str]) -> Zygosity:
    """Derive zygosity from the GT subfield of the first sample column."""
    if len(columns) < 10:
        return Zygosity.UNKNOWN

    fmt, sample = columns[8], columns[9]
    if not fmt or not sample:
        return Zygosity.UNKNOWN

    format_fields = fmt.split(":")
    sample_fields = sample.split(":")
    try:
        gt = sample_fields[format_fields.index(GENOTYPE_KEY)]
    except (ValueError, IndexError):
        return Zygosity.UNKNOWN

    separator = "/" if "/" in gt else "|"
    haplotypes = gt.split(separator)
    if len(haplotypes) != 2:
        return Zygosity.UNKNOWN
    try:
        first, second = (int(h) for h in haplotypes)
    except ValueError:
        # Missing calls such as "./."
        return Zygosity.UNKNOWN

    if first != second:
        return Zygosity.HETEROZYGOUS
    if first == 0:
        return Zygosity.HOMOZYGOUS_REFERENCE
    return Zygosity.HOMOZYGOUS_ALTERNATE


def _tag(info: dict[str, Any], key: str) -> str | None:
    """Return a string-valued INFO tag, ignoring flags and blanks."""
    value = info.get(key)
    if isinstance(value, str) and value and value != ".":
        return value
    return None


def _resolve_rsid(info: dict[str, Any], id_column: str) -> str | None:
    rsid = _tag(info, RSID_TAG)
    if rsid:
        return rsid
    id_column = id_column.strip()
    if id_column and id_column != ".":
        return id_column
    return None


def _parse_quality(raw: str) -> float | None:
    raw = raw.strip()
    if raw in ("", "."):
        return None
    return float(raw)


def _record_from_columns(columns: list[str]) -> VariantRecord | None:
    """
    Build a VariantRecord from one data row, or None when the row is not
    pharmacogenomically relevant. Raises ValueError on unparsable fields.
    """
    chrom, pos, id_column, ref, alt, qual, flt, info_column = columns[:MIN_COLUMNS]
    info = parse_info(info_column)

    tagged_gene = _tag(info, GENE_TAG)
    tagged_star = _tag(info, STAR_TAG)
    rsid = _resolve_rsid(info, id_column)

    gene, star_allele = tagged_gene, tagged_star
    known_rsid = rsid is not None and rsid in RSID_MAP
    if known_rsid:
        mapped_gene, mapped_allele = RSID_MAP[rsid]
        gene = gene or mapped_gene
        star_allele = star_allele or mapped_allele

    if not gene:
        return None
    explicitly_tagged = tagged_gene is not None or tagged_star is not None
    if not (explicitly_tagged or known_rsid or gene in SUPPORTED_GENES):
        return None

    return VariantRecord(
        chromosome=chrom.strip(),
        position=int(pos),
        rsid=rsid,
        reference=ref.strip(),
        alternate=alt.strip(),
        quality=_parse_quality(qual),
        filter=flt.strip() or ".",
        gene=gene,
        star_allele=star_allele,
        info=info,
        zygosity=determine_zygosity(columns),
    )


def _header_value(line: str) -> str:
    return line.split("=", 1)[1].strip() if "=" in line else ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_variants(text: str) -> ExtractionResult:
    """
    Parse VCF text into pharmacogenomically relevant VariantRecords.

    Args:
        text: VCF content that has already passed validate_vcf.

    Returns:
        ExtractionResult: relevant records in file order, plus metadata
        (total data rows seen, relevant count, distinct relevant genes).
    """
    metadata = ExtractionMetadata()
    variants: list[VariantRecord] = []
    genes: dict[str, None] = {}

    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        if line.startswith("##fileformat="):
            metadata.file_format = _header_value(line)
            continue
        if line.startswith("##source="):
            metadata.source = _header_value(line)
            continue
        if line.startswith("#"):
            continue

        columns = line.rstrip("\r\n").split("\t")
        if len(columns) < MIN_COLUMNS:
            logger.debug("Line %d: %d columns, skipped", line_no, len(columns))
            continue

        metadata.total_variants += 1
        try:
            record = _record_from_columns(columns)
        except ValueError as exc:
            logger.debug("Line %d: unparsable row skipped (%s)", line_no, exc)
            continue
        if record is None:
            continue

        variants.append(record)
        genes.setdefault(record.gene, None)

    metadata.pharmacogenomic_variants = len(variants)
    metadata.genes = list(genes)

    logger.info(
        "Extracted %d/%d relevant variants (genes: %s)",
        metadata.pharmacogenomic_variants,
        metadata.total_variants,
        ", ".join(metadata.genes) or "none",
    )
    return ExtractionResult(variants=variants, metadata=metadata)


def group_variants_by_gene(
    variants: list[VariantRecord],
) -> dict[str, list[VariantRecord]]:
    """Group records by gene symbol, preserving file order within each gene."""
    groups: dict[str, list[VariantRecord]] = defaultdict(list)
    for variant in variants:
        groups[variant.gene].append(variant)
    return dict(groups)
