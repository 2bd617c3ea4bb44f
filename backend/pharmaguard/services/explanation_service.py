"""
explanation_service.py — Template-based explanation generator.

Builds the human-readable explanation for one AnalysisResult: clinical
summary, biological mechanism, per-variant interpretation, risk context and
evidence tier. Everything is deterministic template substitution over the
knowledge base; no model or network call is made, so identical inputs
always produce identical text.
"""

from __future__ import annotations

from pharmaguard.models.domain import AlleleFunction, AnalysisResult, RiskCategory, VariantRecord
from pharmaguard.models.schemas import (
    ConfidenceNote,
    EvidenceLevel,
    LLMExplanation,
    MechanismExplanation,
    RiskExplanation,
    VariantInterpretation,
    VariantInterpretationEntry,
)
from pharmaguard.services.knowledge_base import ALLELE_FUNCTIONS, GENE_ROLES


# ---------------------------------------------------------------------------
# Phrase tables
# ---------------------------------------------------------------------------

_RISK_OUTLOOK: dict[RiskCategory, str] = {
    RiskCategory.SAFE: "standard therapeutic response expected",
    RiskCategory.ADJUST_DOSAGE: "dose modification recommended based on altered metabolism",
    RiskCategory.TOXIC: "increased toxicity risk due to altered drug processing",
    RiskCategory.INEFFECTIVE: "reduced or absent therapeutic effect expected",
    RiskCategory.UNKNOWN: "pharmacogenomic impact cannot be determined",
}

_METABOLISM_IMPACT: dict[str, str] = {
    "PM": "indicates absent or severely reduced enzymatic activity, significantly altering drug metabolism",
    "IM": "indicates reduced enzymatic activity, moderately affecting drug processing",
    "NM": "indicates normal enzymatic activity with expected drug processing",
    "RM": "indicates increased enzymatic activity, potentially accelerating drug metabolism",
    "URM": "indicates markedly increased enzymatic activity, substantially accelerating drug metabolism",
}

_VARIANT_CLASSES: dict[AlleleFunction, str] = {
    AlleleFunction.NO_FUNCTION: "loss-of-function",
    AlleleFunction.DECREASED_FUNCTION: "decreased-function",
    AlleleFunction.INCREASED_FUNCTION: "gain-of-function",
    AlleleFunction.NORMAL_FUNCTION: "functional",
}

# (minimum confidence, tier, evidence description, confidence interpretation)
EVIDENCE_TIERS: tuple[tuple[float, str, str, str], ...] = (
    (0.90, "1A",
     "Strong evidence from CPIC guidelines and multiple clinical studies",
     "HIGH CONFIDENCE: well-established pharmacogenomic interaction with strong clinical evidence."),
    (0.80, "1B",
     "Good evidence from CPIC guidelines with clinical validation",
     "GOOD CONFIDENCE: supported by clinical evidence and CPIC guidelines."),
    (0.70, "2A",
     "Moderate evidence based on pharmacogenomic principles and limited clinical data",
     "MODERATE CONFIDENCE: based on pharmacogenomic principles with emerging clinical evidence."),
    (0.0, "2B",
     "Limited evidence; extrapolated from known pharmacogenomic principles",
     "LOW CONFIDENCE: limited clinical evidence. Use with caution."),
)

CAVEATS: tuple[str, ...] = (
    "This is a pharmacogenomic prediction and should be used in conjunction with clinical judgment",
    "Other clinical factors (age, weight, organ function, drug interactions) should also be considered",
    "Results are based on the submitted VCF data and may not capture all relevant variants",
)

DISCLAIMER = (
    "PharmaGuard predictions are intended as clinical decision support and should not replace "
    "professional medical judgment. Results should be interpreted in the context of the complete "
    "clinical picture."
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _score(value: float) -> str:
    return f"{value:g}"


def _percent(confidence: float) -> str:
    return f"{confidence * 100:.0f}%"


def _evidence_tier(confidence: float) -> tuple[float, str, str, str]:
    for tier in EVIDENCE_TIERS:
        if confidence >= tier[0]:
            return tier
    return EVIDENCE_TIERS[-1]


def evidence_level(confidence: float) -> EvidenceLevel:
    """1A (>=0.90), 1B (>=0.80), 2A (>=0.70), otherwise 2B."""
    _, level, description, _ = _evidence_tier(confidence)
    return EvidenceLevel(level=level, description=description)


def classify_variant(gene: str, allele: str | None) -> str:
    if not allele:
        return "unknown significance"
    function = ALLELE_FUNCTIONS.get(gene, {}).get(allele)
    if function is None:
        return "unknown significance"
    return _VARIANT_CLASSES[function]


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def build_clinical_summary(result: AnalysisResult) -> str:
    pgx, rule = result.phenotype, result.rule
    return (
        f"Pharmacogenomic analysis of {result.drug} for a patient with {result.gene} {pgx.diplotype} "
        f"({pgx.phenotype.value}, Activity Score: {_score(pgx.activity_score)}) indicates "
        f"{_RISK_OUTLOOK.get(rule.risk, 'uncertain clinical impact')}. "
        f"This assessment is based on the patient's {pgx.abbreviation} metabolizer status "
        f"and established CPIC guidelines for {result.drug}-{result.gene} interactions. "
        f"Clinical confidence: {_percent(rule.confidence)}."
    )


def _clinical_consequence(result: AnalysisResult) -> str:
    drug, phenotype = result.drug, result.phenotype.phenotype.value
    risk = result.rule.risk
    if risk is RiskCategory.SAFE:
        return (
            f"For {phenotype} patients, {drug} is expected to provide therapeutic benefit at "
            "standard doses without increased risk of adverse effects."
        )
    if risk is RiskCategory.ADJUST_DOSAGE:
        return (
            f"{phenotype} patients metabolizing {drug} at altered rates require careful dose "
            "titration to achieve therapeutic drug levels while minimizing adverse effects."
        )
    if risk is RiskCategory.TOXIC:
        return (
            f"{phenotype} patients are at significantly increased risk for {drug}-related toxicity. "
            "The altered metabolism leads to either drug accumulation or excessive active metabolite "
            "formation, necessitating alternative therapy."
        )
    if risk is RiskCategory.INEFFECTIVE:
        return (
            f"{phenotype} patients are unlikely to achieve therapeutic benefit from {drug} at standard "
            "doses due to altered metabolic processing. Alternative agents should be considered."
        )
    return "Clinical significance requires further evaluation."


def build_mechanism(result: AnalysisResult) -> MechanismExplanation:
    pgx = result.phenotype
    role = GENE_ROLES.get(result.gene, "a pharmacogenomically relevant protein")
    impact = _METABOLISM_IMPACT.get(pgx.abbreviation, "has uncertain effects on drug metabolism")
    return MechanismExplanation(
        gene_role=f"{result.gene} encodes {role}.",
        patient_impact=(
            f"The patient's {pgx.diplotype} diplotype results in {pgx.phenotype.value.lower()} "
            f"status (activity score: {_score(pgx.activity_score)}), which {impact}."
        ),
        drug_processing=result.rule.mechanism,
        clinical_consequence=_clinical_consequence(result),
    )


def _interpret_variant(gene: str, variant: VariantRecord) -> VariantInterpretationEntry:
    return VariantInterpretationEntry(
        rsid=variant.rsid,
        position=f"chr{variant.chromosome.removeprefix('chr')}:{variant.position}",
        change=f"{variant.reference} → {variant.alternate}",
        allele=variant.star_allele,
        zygosity=variant.zygosity.value,
        significance=(
            f"This variant corresponds to the {gene} {variant.star_allele or 'unassigned'} allele, "
            f"which is classified as a {classify_variant(gene, variant.star_allele)} variant."
        ),
    )


def build_variant_interpretation(result: AnalysisResult) -> VariantInterpretation:
    gene, pgx = result.gene, result.phenotype

    if not result.variants:
        return VariantInterpretation(
            summary=(
                f"No {gene} variants detected in the submitted VCF file. The patient is assumed "
                f"to carry reference alleles ({pgx.diplotype})."
            ),
            interpretation=(
                "Absence of detected variants suggests normal (reference) allele carriage. However, "
                "the VCF file may not cover all relevant genomic regions."
            ),
            limitations=(
                "VCF coverage for the gene region should be confirmed. Some variants may not be "
                "captured depending on sequencing methodology."
            ),
        )

    return VariantInterpretation(
        summary=f"{len(result.variants)} pharmacogenomic variant(s) detected in {gene}.",
        variants=[_interpret_variant(gene, v) for v in result.variants],
        interpretation=(
            f"The detected variant(s) support assignment of the {pgx.diplotype} diplotype, "
            f"conferring {pgx.phenotype.value.lower()} status."
        ),
        limitations=(
            "Interpretation is based on detected variants only. Additional variants not captured "
            "in the VCF file could modify the diplotype assignment."
        ),
    )


def _risk_description(risk: RiskCategory, drug: str) -> str:
    if risk is RiskCategory.SAFE:
        return (
            f"{drug} use at standard doses is supported by pharmacogenomic evidence. The patient's "
            "genetic profile is consistent with normal drug processing."
        )
    if risk is RiskCategory.ADJUST_DOSAGE:
        return (
            f"{drug} dose adjustment is recommended. The patient's genetic variant(s) alter drug "
            "metabolism in a way that affects therapeutic outcomes, necessitating careful dose titration."
        )
    if risk is RiskCategory.TOXIC:
        return (
            f"{drug} use carries significant toxicity risk for this patient. Genetic variants "
            "substantially alter drug processing, potentially leading to dangerous drug or "
            "metabolite accumulation."
        )
    if risk is RiskCategory.INEFFECTIVE:
        return (
            f"{drug} is predicted to be therapeutically ineffective for this patient. Genetic variants "
            "prevent adequate drug activation or maintenance of therapeutic levels."
        )
    return "Risk level requires individualized clinical assessment."


def build_risk_explanation(result: AnalysisResult) -> RiskExplanation:
    pgx, rule = result.phenotype, result.rule
    return RiskExplanation(
        risk_level=rule.risk.value,
        risk_description=_risk_description(rule.risk, result.drug),
        contributing_factors=[
            f"{result.gene} {pgx.diplotype} diplotype",
            f"{pgx.phenotype.value} ({pgx.abbreviation}) status",
            f"Activity score: {_score(pgx.activity_score)}",
            f"Drug: {result.drug} ({result.pharmacology})",
        ],
        confidence_assessment=(
            f"Confidence score of {_percent(rule.confidence)} based on established CPIC guidelines "
            f"and clinical evidence for {result.drug}-{result.gene} interactions."
        ),
        caveats=list(CAVEATS),
    )


def build_confidence_note(confidence: float) -> ConfidenceNote:
    _, _, _, interpretation = _evidence_tier(confidence)
    return ConfidenceNote(
        score=confidence,
        percentage_display=_percent(confidence),
        interpretation=interpretation,
        disclaimer=DISCLAIMER,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_explanation(result: AnalysisResult) -> LLMExplanation:
    """
    Generate the explanation for one successful drug analysis.

    Args:
        result: AnalysisResult from risk_engine.

    Returns:
        LLMExplanation with summary, mechanism, variant interpretation,
        risk context, evidence level and confidence note.
    """
    confidence = result.rule.confidence
    return LLMExplanation(
        summary=build_clinical_summary(result),
        mechanism=build_mechanism(result),
        interpretation=build_variant_interpretation(result),
        risk_explanation=build_risk_explanation(result),
        evidence_level=evidence_level(confidence),
        confidence_note=build_confidence_note(confidence),
    )
