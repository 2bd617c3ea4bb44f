"""
Pydantic models matching the per-drug JSON report schema.
Used for response validation and API documentation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Union

from pydantic import BaseModel, Field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# --- Risk + profile ---


class RiskAssessment(BaseModel):
    """Risk assessment for the drug-gene interaction."""

    risk_label: str = "Unknown"
    confidence_score: float = Field(ge=0.0, le=1.0, default=0.0)
    severity: str = "unknown"


class VariantInfo(BaseModel):
    """Single detected variant in pharmacogenomic profile."""

    rsid: str | None = None
    chromosome: str = ""
    position: int = 0
    reference: str = ""
    alternate: str = ""
    star_allele: str | None = None
    zygosity: str = "Unknown"


class PharmacogenomicProfile(BaseModel):
    """Pharmacogenomic profile derived from VCF variants."""

    primary_gene: str = ""
    diplotype: str = ""
    phenotype: str = ""
    phenotype_abbreviation: str = ""
    activity_score: float = 0.0
    allele1: str = ""
    allele2: str = ""
    allele1_function: str = ""
    allele2_function: str = ""
    detected_variants: list[VariantInfo] = Field(default_factory=list)


# --- Clinical recommendation ---


class ClinicalRecommendation(BaseModel):
    """CPIC-style clinical guidance for one drug."""

    action_required: bool = False
    urgency: str = "ROUTINE"
    summary: str = ""
    recommendation: str = ""
    dosage_advice: str = ""
    alternatives: list[str] = Field(default_factory=list)
    monitoring: list[str] = Field(default_factory=list)
    cpic_level: str = ""
    references: list[str] = Field(default_factory=list)


# --- Explanation ---


class MechanismExplanation(BaseModel):
    gene_role: str = ""
    patient_impact: str = ""
    drug_processing: str = ""
    clinical_consequence: str = ""


class VariantInterpretationEntry(BaseModel):
    rsid: str | None = None
    position: str = ""
    change: str = ""
    allele: str | None = None
    zygosity: str = "Unknown"
    significance: str = ""


class VariantInterpretation(BaseModel):
    summary: str = ""
    variants: list[VariantInterpretationEntry] = Field(default_factory=list)
    interpretation: str = ""
    limitations: str = ""


class RiskExplanation(BaseModel):
    risk_level: str = "Unknown"
    risk_description: str = ""
    contributing_factors: list[str] = Field(default_factory=list)
    confidence_assessment: str = ""
    caveats: list[str] = Field(default_factory=list)


class EvidenceLevel(BaseModel):
    level: str = "2B"
    description: str = ""


class ConfidenceNote(BaseModel):
    score: float = 0.0
    percentage_display: str = "0%"
    interpretation: str = ""
    disclaimer: str = ""


class LLMExplanation(BaseModel):
    """Human-readable explanation built from deterministic templates."""

    summary: str = ""
    mechanism: MechanismExplanation = Field(default_factory=MechanismExplanation)
    interpretation: VariantInterpretation = Field(default_factory=VariantInterpretation)
    risk_explanation: RiskExplanation = Field(default_factory=RiskExplanation)
    evidence_level: EvidenceLevel = Field(default_factory=EvidenceLevel)
    confidence_note: ConfidenceNote = Field(default_factory=ConfidenceNote)


class QualityMetrics(BaseModel):
    """Quality and processing metadata."""

    vcf_parsing_success: bool = True
    variants_analyzed: int = 0
    pgx_variants_found: int = 0


# --- Per-drug reports ---


class DrugReport(BaseModel):
    """Complete per-drug report."""

    status: Literal["success"] = "success"
    patient_id: str
    drug: str
    timestamp: str = Field(default_factory=utc_now_iso)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    pharmacogenomic_profile: PharmacogenomicProfile = Field(default_factory=PharmacogenomicProfile)
    clinical_recommendation: ClinicalRecommendation = Field(default_factory=ClinicalRecommendation)
    llm_generated_explanation: LLMExplanation = Field(default_factory=LLMExplanation)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)


class DrugErrorReport(BaseModel):
    """Report entry for a drug that could not be analysed."""

    status: Literal["error"] = "error"
    patient_id: str
    drug: str
    timestamp: str = Field(default_factory=utc_now_iso)
    error: str
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)


AnalysisReport = Union[DrugReport, DrugErrorReport]


# --- Catalogue ---


class DrugCatalogueEntry(BaseModel):
    name: str
    gene: str
    category: str
