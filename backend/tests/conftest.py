# tests/conftest.py
"""
Shared pytest fixtures for PharmaGuard test suite.
Provides: VCF text constants, sample_vcf_path, parsed sample, api_client,
and a make_record factory for VariantRecord objects.
"""
from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the backend root is on sys.path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pharmaguard.models.domain import VariantRecord, Zygosity  # noqa: E402


# ── VCF content ────────────────────────────────────────────────────────────
# One relevant row per gene:
#   CYP2D6  *4  hom-alt  → *4/*4   PM
#   CYP2C19 *2  het      → *1/*2   IM
#   CYP2C9  *2  het (rsID lookup only) → *1/*2 NM
#   SLCO1B1 *5  het      → *1a/*5  NM
#   TPMT    *3C hom-ref  → *1/*1   NM
#   DPYD    *2A het      → Reference/*2A IM
# plus one unrelated row and one short row.
MINIMAL_VCF: str = textwrap.dedent("""\
    ##fileformat=VCFv4.2
    ##source=PharmaGuardTest
    ##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
    #CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSAMPLE
    22\t42524947\trs3892097\tC\tT\t99\tPASS\tGENE=CYP2D6;STAR=*4;RSID=rs3892097\tGT\t1/1
    10\t96541616\trs4244285\tG\tA\t98\tPASS\tGENE=CYP2C19;STAR=*2\tGT\t0/1
    10\t96702047\trs1799853\tC\tT\t97\tPASS\tDP=40\tGT\t0/1
    12\t21331549\trs4149056\tT\tC\t96\tPASS\tGENE=SLCO1B1;STAR=*5\tGT\t0/1
    6\t18130918\trs1142345\tT\tC\t95\tPASS\tGENE=TPMT;STAR=*3C\tGT\t0/0
    1\t97915614\trs3918290\tC\tT\t99\tPASS\tGENE=DPYD;STAR=*2A\tGT\t0|1
    3\t1000\trs999\tA\tG\t50\tPASS\tDP=10\tGT\t0/1
    5\t100\trs1
""")

# Header-only file with no data rows
NO_DATA_VCF: str = textwrap.dedent("""\
    ##fileformat=VCFv4.2
    #CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO
""")

# Valid structure, but nothing pharmacogenomically relevant
NO_PGX_VCF: str = textwrap.dedent("""\
    ##fileformat=VCFv4.2
    #CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO
    3\t1000\t.\tA\tG\t50\tPASS\tDP=10
""")

MALFORMED_VCF: str = "THIS IS NOT A VCF FILE AT ALL"


@pytest.fixture(scope="session")
def sample_vcf_path() -> Path:
    """Path to the sample.vcf test file on disk."""
    p = Path(__file__).parent / "sample.vcf"
    assert p.exists(), f"sample.vcf not found at {p}"
    return p


@pytest.fixture(scope="session")
def minimal_vcf() -> str:
    return MINIMAL_VCF


@pytest.fixture(scope="session")
def vcf_bytes() -> bytes:
    """Minimal valid VCF as bytes (uses in-memory content, no disk read)."""
    return MINIMAL_VCF.encode()


@pytest.fixture(scope="session")
def parsed_sample(sample_vcf_path):
    """ParseResult for sample.vcf (session-scoped for speed)."""
    from pharmaguard.services.vcf_parser import parse_vcf_path
    return parse_vcf_path(sample_vcf_path)


@pytest.fixture
def make_record():
    """Factory for VariantRecord objects with sensible defaults."""

    def _make(
        gene: str = "CYP2D6",
        star: str | None = "*4",
        zygosity: Zygosity = Zygosity.HETEROZYGOUS,
        rsid: str | None = None,
        chrom: str = "22",
        pos: int = 42524947,
        ref: str = "C",
        alt: str = "T",
    ) -> VariantRecord:
        return VariantRecord(
            chromosome=chrom,
            position=pos,
            rsid=rsid,
            reference=ref,
            alternate=alt,
            gene=gene,
            star_allele=star,
            zygosity=zygosity,
        )

    return _make


@pytest.fixture(scope="session")
def api_client():
    """FastAPI TestClient (no running server needed)."""
    from pharmaguard.main import app
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
