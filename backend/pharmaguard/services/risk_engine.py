"""
risk_engine.py — Pharmacogenomic risk assessment service.

For each requested drug:
  drug name → governing gene → that gene's variants → allele pair
  → phenotype → RiskRule.

Output per drug is an AnalysisOutcome:
  AnalysisResult  — full analysis
  AnalysisFailure — unsupported drug; siblings are unaffected

risk      : "Safe" | "Adjust Dosage" | "Toxic" | "Ineffective" | "Unknown"
severity  : "Low" | "Moderate" | "High" | "Critical"
phenotype : "PM" | "IM" | "NM" | "RM" | "URM"

References: CPIC guidelines (cpicpgx.org), PharmGKB.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from pharmaguard.config import SUPPORTED_DRUGS
from pharmaguard.models.domain import (
    AnalysisFailure,
    AnalysisOutcome,
    AnalysisResult,
    DrugGeneRule,
    RiskCategory,
    RiskRule,
    VariantRecord,
)
from pharmaguard.services.allele_resolver import resolve_alleles
from pharmaguard.services.knowledge_base import (
    DRUG_GENE_RULES,
    GENERIC_MONITORING_PLAN,
    MONITORING_PLANS,
)
from pharmaguard.services.phenotype_scorer import score_assignment
from pharmaguard.services.variant_extractor import group_variants_by_gene
from pharmaguard.utils.exceptions import DrugNotSupportedError

logger = logging.getLogger(__name__)

FALLBACK_PHENOTYPE = "NM"

_DRUGS_BY_KEY: dict[str, str] = {drug.lower(): drug for drug in SUPPORTED_DRUGS}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def normalize_drug_name(name: str) -> str | None:
    """Canonical drug name for a case-insensitive, trimmed match, else None."""
    return _DRUGS_BY_KEY.get(name.strip().lower())


def get_drug_rule(name: str) -> DrugGeneRule:
    """
    Look up the rule table for a drug name.

    Raises:
        DrugNotSupportedError: If the name does not match a supported drug.
    """
    canonical = normalize_drug_name(name)
    if canonical is None:
        raise DrugNotSupportedError(name.strip())
    return DRUG_GENE_RULES[canonical]


def resolve_risk_rule(drug_rule: DrugGeneRule, abbreviation: str) -> RiskRule:
    """
    Rule for a phenotype abbreviation.

    Lookup order:
      1. the exact phenotype entry
      2. the gene's Normal Metabolizer (NM) entry
    """
    rule = drug_rule.rules.get(abbreviation)
    if rule is not None:
        return rule
    logger.info(
        "%s has no %s rule; using %s entry", drug_rule.drug, abbreviation, FALLBACK_PHENOTYPE
    )
    return drug_rule.rules[FALLBACK_PHENOTYPE]


def resolve_monitoring_plan(drug: str, risk: RiskCategory) -> tuple[str, ...]:
    """
    Monitoring steps for a drug at a risk category.

    Lookup order:
      1. the (drug, risk) plan
      2. the drug's Safe plan
      3. GENERIC_MONITORING_PLAN
    """
    plans = MONITORING_PLANS.get(drug, {})
    return plans.get(risk) or plans.get(RiskCategory.SAFE) or GENERIC_MONITORING_PLAN


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def assess_drug(
    drug: str,
    gene_groups: dict[str, list[VariantRecord]],
) -> AnalysisOutcome:
    """Analyse one requested drug against pre-grouped variants."""
    try:
        drug_rule = get_drug_rule(drug)
    except DrugNotSupportedError as exc:
        logger.warning("Skipping drug: %s", exc.message)
        return AnalysisFailure(drug=drug, reason=f"Unsupported drug: {drug}")

    gene = drug_rule.gene
    gene_variants = gene_groups.get(gene, [])

    alleles = resolve_alleles(gene, gene_variants)
    phenotype = score_assignment(alleles)
    rule = resolve_risk_rule(drug_rule, phenotype.abbreviation)

    logger.info(
        "Risk assessment: drug=%s gene=%s variants=%d diplotype=%s phenotype=%s risk=%s",
        drug_rule.drug, gene, len(gene_variants),
        phenotype.diplotype, phenotype.abbreviation, rule.risk.value,
    )

    return AnalysisResult(
        drug=drug_rule.drug,
        gene=gene,
        gene_description=drug_rule.description,
        pharmacology=drug_rule.pharmacology,
        variants=tuple(gene_variants),
        alleles=alleles,
        phenotype=phenotype,
        rule=rule,
    )


def predict_risks(
    variants: Sequence[VariantRecord],
    drugs: Iterable[str],
) -> list[AnalysisOutcome]:
    """
    Analyse every requested drug against the patient's variants.

    Returns one outcome per requested drug, in request order. Unsupported
    drugs yield an AnalysisFailure; nothing is raised.
    """
    gene_groups = group_variants_by_gene(list(variants))
    return [assess_drug(drug, gene_groups) for drug in drugs]
