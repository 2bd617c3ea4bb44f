"""
tests/test_variant_extractor.py
Unit tests for pharmaguard.services.variant_extractor
"""
from __future__ import annotations

import pytest

from pharmaguard.models.domain import Zygosity
from pharmaguard.services.variant_extractor import (
    determine_zygosity,
    extract_variants,
    group_variants_by_gene,
    parse_info,
)
from tests.conftest import MINIMAL_VCF, NO_PGX_VCF

HEADER = "##fileformat=VCFv4.2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSAMPLE\n"


# ── Helpers ───────────────────────────────────────────────────────────────

def _columns(info=".", rsid=".", gt="0/1", fmt="GT", pos="1000", qual="50"):
    return ["1", pos, rsid, "A", "G", qual, "PASS", info, fmt, gt]


def _vcf(*rows):
    return HEADER + "".join("\t".join(cols) + "\n" for cols in rows)


# ── parse_info ────────────────────────────────────────────────────────────

class TestParseInfo:

    def test_key_value_pairs(self):
        assert parse_info("GENE=CYP2D6;STAR=*4") == {"GENE": "CYP2D6", "STAR": "*4"}

    def test_bare_key_is_flag(self):
        assert parse_info("DB;DP=10") == {"DB": True, "DP": "10"}

    def test_splits_on_first_equals_only(self):
        assert parse_info("ANN=a=b") == {"ANN": "a=b"}

    def test_dot_is_empty(self):
        assert parse_info(".") == {}

    def test_empty_string_is_empty(self):
        assert parse_info("") == {}

    def test_empty_entries_ignored(self):
        assert parse_info("DP=5;;") == {"DP": "5"}


# ── determine_zygosity ────────────────────────────────────────────────────

class TestDetermineZygosity:

    @pytest.mark.parametrize("gt, expected", [
        ("0/0", Zygosity.HOMOZYGOUS_REFERENCE),
        ("0/1", Zygosity.HETEROZYGOUS),
        ("1/0", Zygosity.HETEROZYGOUS),
        ("1/1", Zygosity.HOMOZYGOUS_ALTERNATE),
        ("0|1", Zygosity.HETEROZYGOUS),
        ("1|1", Zygosity.HOMOZYGOUS_ALTERNATE),
        ("1/2", Zygosity.HETEROZYGOUS),
        ("2/2", Zygosity.HOMOZYGOUS_ALTERNATE),
    ])
    def test_genotype_calls(self, gt, expected):
        assert determine_zygosity(_columns(gt=gt)) is expected

    def test_missing_call_is_unknown(self):
        assert determine_zygosity(_columns(gt="./.")) is Zygosity.UNKNOWN

    def test_haploid_call_is_unknown(self):
        assert determine_zygosity(_columns(gt="1")) is Zygosity.UNKNOWN

    def test_fewer_than_ten_columns_is_unknown(self):
        assert determine_zygosity(_columns()[:8]) is Zygosity.UNKNOWN

    def test_gt_located_by_format_name(self):
        cols = _columns(fmt="DP:GT", gt="35:1/1")
        assert determine_zygosity(cols) is Zygosity.HOMOZYGOUS_ALTERNATE

    def test_format_without_gt_is_unknown(self):
        assert determine_zygosity(_columns(fmt="DP", gt="35")) is Zygosity.UNKNOWN

    def test_truncated_sample_is_unknown(self):
        assert determine_zygosity(_columns(fmt="DP:GT", gt="35")) is Zygosity.UNKNOWN


# ── extract_variants ──────────────────────────────────────────────────────

class TestExtractVariants:

    def test_minimal_counts(self):
        result = extract_variants(MINIMAL_VCF)
        assert result.metadata.total_variants == 7
        assert result.metadata.pharmacogenomic_variants == 6
        assert len(result.variants) == 6

    def test_minimal_genes_in_file_order(self):
        result = extract_variants(MINIMAL_VCF)
        assert result.metadata.genes == [
            "CYP2D6", "CYP2C19", "CYP2C9", "SLCO1B1", "TPMT", "DPYD",
        ]

    def test_record_fields(self):
        first = extract_variants(MINIMAL_VCF).variants[0]
        assert first.chromosome == "22"
        assert first.position == 42524947
        assert first.rsid == "rs3892097"
        assert first.reference == "C"
        assert first.alternate == "T"
        assert first.quality == 99.0
        assert first.filter == "PASS"
        assert first.gene == "CYP2D6"
        assert first.star_allele == "*4"
        assert first.zygosity is Zygosity.HOMOZYGOUS_ALTERNATE
        assert first.info["RSID"] == "rs3892097"

    def test_info_is_read_only(self):
        first = extract_variants(MINIMAL_VCF).variants[0]
        with pytest.raises(TypeError):
            first.info["GENE"] = "TPMT"
        assert first.model_dump()["info"]["GENE"] == "CYP2D6"

    def test_rsid_lookup_fills_gene_and_star(self):
        cyp2c9 = [v for v in extract_variants(MINIMAL_VCF).variants if v.gene == "CYP2C9"]
        assert len(cyp2c9) == 1
        assert cyp2c9[0].star_allele == "*2"
        assert cyp2c9[0].rsid == "rs1799853"

    def test_rsid_from_info_tag_when_id_missing(self):
        text = _vcf(_columns(info="RSID=rs1057910", rsid="."))
        variant = extract_variants(text).variants[0]
        assert variant.rsid == "rs1057910"
        assert (variant.gene, variant.star_allele) == ("CYP2C9", "*3")

    def test_explicit_tags_override_lookup(self):
        text = _vcf(_columns(info="GENE=CYP2D6;STAR=*10", rsid="rs3892097"))
        variant = extract_variants(text).variants[0]
        assert variant.star_allele == "*10"

    def test_lookup_fills_star_when_only_gene_tagged(self):
        text = _vcf(_columns(info="GENE=CYP2C19", rsid="rs12248560"))
        assert extract_variants(text).variants[0].star_allele == "*17"

    def test_explicitly_tagged_unsupported_gene_kept(self):
        text = _vcf(_columns(info="GENE=CFTR;DB"))
        variants = extract_variants(text).variants
        assert len(variants) == 1
        assert variants[0].gene == "CFTR"
        assert variants[0].star_allele is None

    def test_unknown_rsid_without_tags_not_relevant(self):
        result = extract_variants(_vcf(_columns(info="DP=10", rsid="rs999")))
        assert result.variants == []
        assert result.metadata.total_variants == 1

    def test_star_without_resolvable_gene_not_relevant(self):
        result = extract_variants(_vcf(_columns(info="STAR=*4", rsid="rs999")))
        assert result.variants == []

    def test_no_pgx_file(self):
        result = extract_variants(NO_PGX_VCF)
        assert result.variants == []
        assert result.metadata.genes == []

    def test_short_rows_skipped_and_not_counted(self):
        text = HEADER + "1\t100\trs3892097\n"
        result = extract_variants(text)
        assert result.metadata.total_variants == 0
        assert result.variants == []

    def test_eight_column_row_without_sample(self):
        cols = _columns(info="GENE=TPMT;STAR=*3B")[:8]
        variant = extract_variants(_vcf(cols)).variants[0]
        assert variant.zygosity is Zygosity.UNKNOWN

    def test_unparsable_position_skipped(self):
        bad = _columns(info="GENE=TPMT;STAR=*3B", pos="abc")
        good = _columns(info="GENE=DPYD;STAR=*2A")
        result = extract_variants(_vcf(bad, good))
        assert result.metadata.total_variants == 2
        assert [v.gene for v in result.variants] == ["DPYD"]

    def test_missing_quality_is_none(self):
        text = _vcf(_columns(info="GENE=TPMT;STAR=*3B", qual="."))
        assert extract_variants(text).variants[0].quality is None

    def test_unparsable_quality_skipped(self):
        text = _vcf(_columns(info="GENE=TPMT;STAR=*3B", qual="high"))
        assert extract_variants(text).variants == []

    def test_blank_lines_ignored(self):
        text = _vcf(_columns(info="GENE=TPMT;STAR=*3B")) + "\n\n"
        assert extract_variants(text).metadata.total_variants == 1

    def test_metadata_headers_captured(self):
        result = extract_variants(MINIMAL_VCF)
        assert result.metadata.file_format == "VCFv4.2"
        assert result.metadata.source == "PharmaGuardTest"

    def test_deterministic(self):
        assert extract_variants(MINIMAL_VCF) == extract_variants(MINIMAL_VCF)


# ── group_variants_by_gene ────────────────────────────────────────────────

class TestGroupVariantsByGene:

    def test_groups_by_gene(self, make_record):
        records = [
            make_record(gene="CYP2D6", star="*4"),
            make_record(gene="TPMT", star="*3B"),
            make_record(gene="CYP2D6", star="*10"),
        ]
        groups = group_variants_by_gene(records)
        assert set(groups) == {"CYP2D6", "TPMT"}
        assert [v.star_allele for v in groups["CYP2D6"]] == ["*4", "*10"]

    def test_empty_input(self):
        assert group_variants_by_gene([]) == {}

    def test_sample_file_groups(self, parsed_sample):
        groups = group_variants_by_gene(parsed_sample.variants)
        assert len(groups["CYP2D6"]) == 2
        assert len(groups["CFTR"]) == 1
