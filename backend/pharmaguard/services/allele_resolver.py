"""
allele_resolver.py — Diplotype approximation from unphased genotype calls.

Per gene, turns the ordered list of relevant VariantRecords into two star
alleles. Only the first two variants are ever inspected:

  variants | zygosity of 1st        | allele1       | allele2
  ---------+------------------------+---------------+-------------------
  0        | -                      | default       | default
  1        | Homozygous Alternate   | 1st star      | 1st star
  1        | Heterozygous           | default       | 1st star
  1        | other                  | default       | default
  >=2      | Heterozygous           | default       | 2nd star
  >=2      | Homozygous Alternate   | 1st star      | 1st star
  >=2      | other                  | default       | 2nd star

This approximates compound heterozygosity; it is not haplotype phasing.
A variant without a star allele stands in as the gene default.
"""

from __future__ import annotations

import logging
from typing import Sequence

from pharmaguard.models.domain import AlleleAssignment, VariantRecord, Zygosity
from pharmaguard.services.knowledge_base import ALLELE_FUNCTIONS, DEFAULT_ALLELES

logger = logging.getLogger(__name__)

FALLBACK_DEFAULT_ALLELE = "*1"
ASSUMED_NORMAL = "Normal Function (assumed)"


def default_allele(gene: str) -> str:
    return DEFAULT_ALLELES.get(gene, FALLBACK_DEFAULT_ALLELE)


def describe_allele(gene: str, allele: str) -> str:
    """'<allele> (<function>)' when the allele is catalogued, else the bare allele."""
    function = ALLELE_FUNCTIONS.get(gene, {}).get(allele)
    return f"{allele} ({function.value})" if function else allele


def resolve_alleles(gene: str, variants: Sequence[VariantRecord]) -> AlleleAssignment:
    """Resolve the allele pair for *gene* from its relevant variants."""
    default = default_allele(gene)

    if not variants:
        return AlleleAssignment(
            gene=gene,
            allele1=default,
            allele2=default,
            allele1_function=ASSUMED_NORMAL,
            allele2_function=ASSUMED_NORMAL,
        )

    primary = variants[0]
    primary_star = primary.star_allele or default

    if primary.zygosity is Zygosity.HOMOZYGOUS_ALTERNATE:
        allele1 = allele2 = primary_star
    elif primary.zygosity is Zygosity.HETEROZYGOUS:
        allele1, allele2 = default, primary_star
        if len(variants) > 1:
            allele2 = variants[1].star_allele or allele2
    else:
        allele1 = default
        allele2 = (variants[1].star_allele or default) if len(variants) > 1 else default

    if len(variants) > 2:
        logger.debug(
            "%s: %d variants, only the first two inform the diplotype",
            gene, len(variants),
        )

    return AlleleAssignment(
        gene=gene,
        allele1=allele1,
        allele2=allele2,
        allele1_function=describe_allele(gene, allele1),
        allele2_function=describe_allele(gene, allele2),
    )
