"""
analysis_pipeline.py — End-to-end analysis for one request.

Data flow
---------
1. vcf_parser            → structural validation + ParseResult
2. risk_engine           → one AnalysisOutcome per requested drug
3. recommendation_service / explanation_service → report sections
4. Assemble DrugReport / DrugErrorReport objects in request order.

A request either fails validation before any per-drug work (VCFParseError)
or completes fully; per-drug failures become DrugErrorReport entries.
"""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from pharmaguard.models.domain import AnalysisFailure, AnalysisOutcome, AnalysisResult
from pharmaguard.models.schemas import (
    AnalysisReport,
    DrugErrorReport,
    DrugReport,
    PharmacogenomicProfile,
    QualityMetrics,
    RiskAssessment,
    VariantInfo,
    utc_now_iso,
)
from pharmaguard.services.explanation_service import generate_explanation
from pharmaguard.services.recommendation_service import generate_recommendation
from pharmaguard.services.risk_engine import predict_risks
from pharmaguard.services.vcf_parser import ParseResult, parse_vcf_text
from pharmaguard.utils.exceptions import NoDrugsSpecifiedError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def new_patient_id() -> str:
    return f"PGX-{uuid.uuid4().hex[:8].upper()}"


def split_drug_list(raw: str) -> list[str]:
    """Split a comma-separated drug field, dropping blanks; order is kept."""
    return [name.strip() for name in raw.split(",") if name.strip()]


def _quality_metrics(parsed: ParseResult) -> QualityMetrics:
    return QualityMetrics(
        vcf_parsing_success=parsed.success,
        variants_analyzed=parsed.metadata.total_variants,
        pgx_variants_found=parsed.metadata.pharmacogenomic_variants,
    )


def _profile(result: AnalysisResult) -> PharmacogenomicProfile:
    pgx, alleles = result.phenotype, result.alleles
    return PharmacogenomicProfile(
        primary_gene=result.gene,
        diplotype=pgx.diplotype,
        phenotype=pgx.phenotype.value,
        phenotype_abbreviation=pgx.abbreviation,
        activity_score=pgx.activity_score,
        allele1=alleles.allele1,
        allele2=alleles.allele2,
        allele1_function=alleles.allele1_function,
        allele2_function=alleles.allele2_function,
        detected_variants=[
            VariantInfo(
                rsid=v.rsid,
                chromosome=v.chromosome,
                position=v.position,
                reference=v.reference,
                alternate=v.alternate,
                star_allele=v.star_allele,
                zygosity=v.zygosity.value,
            )
            for v in result.variants
        ],
    )


def build_report(
    outcome: AnalysisOutcome,
    *,
    patient_id: str,
    timestamp: str,
    quality: QualityMetrics,
) -> AnalysisReport:
    """Turn one risk-engine outcome into its report entry."""
    if isinstance(outcome, AnalysisFailure):
        return DrugErrorReport(
            patient_id=patient_id,
            drug=outcome.drug,
            timestamp=timestamp,
            error=outcome.reason,
            risk_assessment=RiskAssessment(
                risk_label=outcome.risk.value,
                confidence_score=outcome.confidence,
            ),
            quality_metrics=quality,
        )

    rule = outcome.rule
    return DrugReport(
        patient_id=patient_id,
        drug=outcome.drug,
        timestamp=timestamp,
        risk_assessment=RiskAssessment(
            risk_label=rule.risk.value,
            confidence_score=rule.confidence,
            severity=rule.severity.value.lower(),
        ),
        pharmacogenomic_profile=_profile(outcome),
        clinical_recommendation=generate_recommendation(outcome),
        llm_generated_explanation=generate_explanation(outcome),
        quality_metrics=quality,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analyze_parsed(
    parsed: ParseResult,
    drugs: Sequence[str],
    patient_id: str | None = None,
) -> list[AnalysisReport]:
    """Run the per-drug stages over an already parsed VCF."""
    if not drugs:
        raise NoDrugsSpecifiedError()

    patient_id = patient_id or new_patient_id()
    timestamp = utc_now_iso()
    quality = _quality_metrics(parsed)

    outcomes = predict_risks(parsed.variants, drugs)
    reports = [
        build_report(outcome, patient_id=patient_id, timestamp=timestamp, quality=quality)
        for outcome in outcomes
    ]

    failed = sum(isinstance(outcome, AnalysisFailure) for outcome in outcomes)
    logger.info(
        "Analysis complete: patient=%s drugs=%d failed=%d", patient_id, len(reports), failed
    )
    return reports


def analyze_vcf(
    text: str,
    drugs: Sequence[str],
    patient_id: str | None = None,
) -> list[AnalysisReport]:
    """
    Full pipeline over VCF text for the requested drugs.

    Args:
        text: Raw VCF text.
        drugs: Requested drug names, any case; order is preserved.
        patient_id: Echoed in every report; generated when omitted.

    Raises:
        VCFParseError: If the VCF fails structural validation.
        NoDrugsSpecifiedError: If *drugs* is empty.
    """
    if not drugs:
        raise NoDrugsSpecifiedError()
    return analyze_parsed(parse_vcf_text(text), drugs, patient_id)
