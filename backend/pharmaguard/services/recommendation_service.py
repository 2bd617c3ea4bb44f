"""
recommendation_service.py — CPIC-aligned clinical recommendations.

A pure function of one AnalysisResult: no I/O, no shared state.
"""

from __future__ import annotations

from pharmaguard.models.domain import AnalysisResult, RiskCategory, Severity, UrgencyLevel
from pharmaguard.models.schemas import ClinicalRecommendation
from pharmaguard.services.risk_engine import resolve_monitoring_plan

CPIC_LEVELS: dict[RiskCategory, str] = {
    RiskCategory.SAFE: "A - Strong recommendation, standard dosing",
    RiskCategory.ADJUST_DOSAGE: "A - Strong recommendation, dose modification",
    RiskCategory.TOXIC: "A - Strong recommendation, alternative therapy",
    RiskCategory.INEFFECTIVE: "A - Strong recommendation, alternative therapy",
}
DEFAULT_CPIC_LEVEL = "B - Moderate recommendation"


def urgency_level(risk: RiskCategory, severity: Severity) -> UrgencyLevel:
    if severity is Severity.CRITICAL:
        return UrgencyLevel.URGENT
    if severity is Severity.HIGH:
        return UrgencyLevel.HIGH
    if risk is RiskCategory.ADJUST_DOSAGE:
        return UrgencyLevel.MODERATE
    return UrgencyLevel.ROUTINE


def cpic_level(risk: RiskCategory) -> str:
    return CPIC_LEVELS.get(risk, DEFAULT_CPIC_LEVEL)


def build_summary(result: AnalysisResult) -> str:
    drug, gene = result.drug, result.gene
    pgx = result.phenotype
    patient = f"this {pgx.phenotype.value} ({pgx.diplotype}) patient"
    status = f"{gene} {pgx.abbreviation} status"
    risk = result.rule.risk

    if risk is RiskCategory.SAFE:
        return (
            f"{drug} can be used at standard doses for {patient}. "
            "No pharmacogenomic dose adjustments are recommended."
        )
    if risk is RiskCategory.ADJUST_DOSAGE:
        affected = "clearance" if drug == "Warfarin" else "metabolism"
        return f"{drug} requires dose modification for {patient}. {status} affects drug {affected}."
    if risk is RiskCategory.TOXIC:
        outcome = (
            "excessive active metabolite formation" if drug == "Codeine" else "drug accumulation"
        )
        return f"{drug} poses a significant toxicity risk for {patient}. {status} leads to {outcome}."
    if risk is RiskCategory.INEFFECTIVE:
        shortfall = "prodrug activation" if drug == "Clopidogrel" else "therapeutic effect"
        return f"{drug} is likely ineffective for {patient}. {status} results in insufficient {shortfall}."
    return f"{drug} risk assessment requires clinical review for {pgx.phenotype.value} patients."


def build_references(result: AnalysisResult) -> list[str]:
    references = [
        f"CPIC Guideline for {result.drug} and {result.gene}",
        f"PharmGKB Clinical Annotation - {result.gene} {result.phenotype.diplotype}",
    ]
    if result.rule.risk is not RiskCategory.SAFE:
        references.append(f"FDA Drug Label - {result.drug} pharmacogenomic information")
    return references


def generate_recommendation(result: AnalysisResult) -> ClinicalRecommendation:
    rule = result.rule
    return ClinicalRecommendation(
        action_required=rule.risk is not RiskCategory.SAFE,
        urgency=urgency_level(rule.risk, rule.severity).value,
        summary=build_summary(result),
        recommendation=rule.recommendation,
        dosage_advice=rule.dosage_advice,
        alternatives=list(rule.alternatives),
        monitoring=list(resolve_monitoring_plan(result.drug, rule.risk)),
        cpic_level=cpic_level(rule.risk),
        references=build_references(result),
    )
