"""Pydantic models: internal pipeline entities and per-drug report schemas."""

from pharmaguard.models.domain import (
    AlleleAssignment,
    AlleleFunction,
    AnalysisFailure,
    AnalysisOutcome,
    AnalysisResult,
    DrugGeneRule,
    ExtractionMetadata,
    ExtractionResult,
    MetabolizerPhenotype,
    PhenotypeResult,
    RiskCategory,
    RiskRule,
    Severity,
    UrgencyLevel,
    ValidationReport,
    VariantRecord,
    Zygosity,
)
from pharmaguard.models.schemas import (
    AnalysisReport,
    ClinicalRecommendation,
    DrugErrorReport,
    DrugReport,
    LLMExplanation,
    PharmacogenomicProfile,
    QualityMetrics,
    RiskAssessment,
    VariantInfo,
)

__all__ = [
    "AlleleAssignment",
    "AlleleFunction",
    "AnalysisFailure",
    "AnalysisOutcome",
    "AnalysisReport",
    "AnalysisResult",
    "ClinicalRecommendation",
    "DrugErrorReport",
    "DrugGeneRule",
    "DrugReport",
    "ExtractionMetadata",
    "ExtractionResult",
    "LLMExplanation",
    "MetabolizerPhenotype",
    "PharmacogenomicProfile",
    "PhenotypeResult",
    "QualityMetrics",
    "RiskAssessment",
    "RiskCategory",
    "RiskRule",
    "Severity",
    "UrgencyLevel",
    "ValidationReport",
    "VariantInfo",
    "VariantRecord",
    "Zygosity",
]
