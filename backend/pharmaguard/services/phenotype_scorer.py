"""
phenotype_scorer.py — Activity score and metabolizer phenotype.

Each allele contributes its function's activity value (No 0, Decreased 0.5,
Normal 1.0, Increased 1.5; uncatalogued alleles count as Normal). The sum
lies in [0, 3] and maps to a phenotype, upper bounds inclusive:

  score == 0          PM
  0   < score <= 1.0  IM
  1.0 < score <= 2.0  NM
  2.0 < score <= 2.5  RM
  score > 2.5         URM
"""

from __future__ import annotations

import logging

from pharmaguard.models.domain import (
    AlleleAssignment,
    AlleleFunction,
    MetabolizerPhenotype,
    PhenotypeResult,
)
from pharmaguard.services.knowledge_base import ALLELE_FUNCTIONS

logger = logging.getLogger(__name__)

# (inclusive upper bound, phenotype), checked in order
PHENOTYPE_THRESHOLDS: tuple[tuple[float, MetabolizerPhenotype], ...] = (
    (0.0, MetabolizerPhenotype.POOR),
    (1.0, MetabolizerPhenotype.INTERMEDIATE),
    (2.0, MetabolizerPhenotype.NORMAL),
    (2.5, MetabolizerPhenotype.RAPID),
)


def allele_function(gene: str, allele: str) -> AlleleFunction:
    return ALLELE_FUNCTIONS.get(gene, {}).get(allele, AlleleFunction.NORMAL_FUNCTION)


def allele_score(gene: str, allele: str) -> float:
    return allele_function(gene, allele).activity_value


def classify_activity_score(score: float) -> MetabolizerPhenotype:
    for upper_bound, phenotype in PHENOTYPE_THRESHOLDS:
        if score <= upper_bound:
            return phenotype
    return MetabolizerPhenotype.ULTRA_RAPID


def score_phenotype(gene: str, allele1: str, allele2: str) -> PhenotypeResult:
    score = allele_score(gene, allele1) + allele_score(gene, allele2)
    phenotype = classify_activity_score(score)
    return PhenotypeResult(
        diplotype=f"{allele1}/{allele2}",
        phenotype=phenotype,
        activity_score=score,
    )


def score_assignment(assignment: AlleleAssignment) -> PhenotypeResult:
    result = score_phenotype(assignment.gene, assignment.allele1, assignment.allele2)
    logger.info(
        "%s %s: activity score %s -> %s",
        assignment.gene, result.diplotype, result.activity_score, result.abbreviation,
    )
    return result
