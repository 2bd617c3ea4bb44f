"""
Internal data models for the pharmacogenomic inference pipeline.

These are created fresh for every analysis request and discarded once the
response has been assembled. Entities that must not change after they are
built are frozen; list-valued fields are tuples.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Zygosity(str, Enum):
    """Genotype call at a single position."""

    HOMOZYGOUS_REFERENCE = "Homozygous Reference"
    HOMOZYGOUS_ALTERNATE = "Homozygous Alternate"
    HETEROZYGOUS = "Heterozygous"
    UNKNOWN = "Unknown"


class MetabolizerPhenotype(str, Enum):
    """CPIC metabolizer phenotype categories."""

    POOR = "Poor Metabolizer"
    INTERMEDIATE = "Intermediate Metabolizer"
    NORMAL = "Normal Metabolizer"
    RAPID = "Rapid Metabolizer"
    ULTRA_RAPID = "Ultra-Rapid Metabolizer"

    @property
    def abbreviation(self) -> str:
        return _PHENOTYPE_ABBREVIATIONS[self]

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> "MetabolizerPhenotype":
        for phenotype, abbr in _PHENOTYPE_ABBREVIATIONS.items():
            if abbr == abbreviation:
                return phenotype
        raise ValueError(f"Unknown phenotype abbreviation: {abbreviation!r}")


_PHENOTYPE_ABBREVIATIONS: dict[MetabolizerPhenotype, str] = {
    MetabolizerPhenotype.POOR: "PM",
    MetabolizerPhenotype.INTERMEDIATE: "IM",
    MetabolizerPhenotype.NORMAL: "NM",
    MetabolizerPhenotype.RAPID: "RM",
    MetabolizerPhenotype.ULTRA_RAPID: "URM",
}


class AlleleFunction(str, Enum):
    """Star-allele function classes with their activity values."""

    NO_FUNCTION = "No Function"
    DECREASED_FUNCTION = "Decreased Function"
    NORMAL_FUNCTION = "Normal Function"
    INCREASED_FUNCTION = "Increased Function"

    @property
    def activity_value(self) -> float:
        return _ACTIVITY_VALUES[self]


_ACTIVITY_VALUES: dict[AlleleFunction, float] = {
    AlleleFunction.NO_FUNCTION: 0.0,
    AlleleFunction.DECREASED_FUNCTION: 0.5,
    AlleleFunction.NORMAL_FUNCTION: 1.0,
    AlleleFunction.INCREASED_FUNCTION: 1.5,
}


class RiskCategory(str, Enum):
    SAFE = "Safe"
    ADJUST_DOSAGE = "Adjust Dosage"
    TOXIC = "Toxic"
    INEFFECTIVE = "Ineffective"
    UNKNOWN = "Unknown"


class Severity(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"


class UrgencyLevel(str, Enum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    MODERATE = "MODERATE"
    ROUTINE = "ROUTINE"


# ---------------------------------------------------------------------------
# VCF ingestion
# ---------------------------------------------------------------------------


class ValidationReport(BaseModel):
    """Outcome of the structural VCF check; lists every failure found."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class VariantRecord(BaseModel):
    """One pharmacogenomically relevant VCF data row."""

    model_config = ConfigDict(frozen=True)

    chromosome: str
    position: int
    rsid: str | None = None
    reference: str
    alternate: str
    quality: float | None = None
    filter: str = "."
    gene: str
    star_allele: str | None = None
    info: Mapping[str, Any] = Field(default_factory=lambda: MappingProxyType({}))
    zygosity: Zygosity = Zygosity.UNKNOWN

    @field_validator("info")
    @classmethod
    def freeze_info(cls, info: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(info))

    @field_serializer("info")
    def dump_info(self, info: Mapping[str, Any]) -> dict[str, Any]:
        return dict(info)


class ExtractionMetadata(BaseModel):
    """Aggregate counts collected while extracting variants."""

    file_format: str = ""
    source: str = ""
    total_variants: int = 0
    pharmacogenomic_variants: int = 0
    genes: list[str] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    variants: list[VariantRecord] = Field(default_factory=list)
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------


class AlleleAssignment(BaseModel):
    """Two-allele genotype resolved for one gene."""

    model_config = ConfigDict(frozen=True)

    gene: str
    allele1: str
    allele2: str
    allele1_function: str
    allele2_function: str


class PhenotypeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    diplotype: str
    phenotype: MetabolizerPhenotype
    activity_score: float = Field(ge=0.0, le=3.0)

    @property
    def abbreviation(self) -> str:
        return self.phenotype.abbreviation


class RiskRule(BaseModel):
    """Clinical rule for one (gene, phenotype) combination."""

    model_config = ConfigDict(frozen=True)

    risk: RiskCategory
    severity: Severity
    confidence: float = Field(ge=0.0, le=1.0)
    recommendation: str
    dosage_advice: str
    alternatives: tuple[str, ...] = ()
    mechanism: str


class DrugGeneRule(BaseModel):
    """A drug, its governing gene, and the gene's per-phenotype rules."""

    model_config = ConfigDict(frozen=True)

    drug: str
    gene: str
    description: str
    category: str
    pharmacology: str
    rules: Mapping[str, RiskRule]

    @field_validator("rules")
    @classmethod
    def check_phenotype_keys(cls, rules: Mapping[str, RiskRule]) -> Mapping[str, RiskRule]:
        for abbreviation in rules:
            MetabolizerPhenotype.from_abbreviation(abbreviation)
        return MappingProxyType(dict(rules))

    @field_serializer("rules")
    def dump_rules(self, rules: Mapping[str, RiskRule]) -> dict[str, RiskRule]:
        return dict(rules)


class AnalysisResult(BaseModel):
    """Successful per-drug analysis."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    drug: str
    gene: str
    gene_description: str
    pharmacology: str
    variants: tuple[VariantRecord, ...] = ()
    alleles: AlleleAssignment
    phenotype: PhenotypeResult
    rule: RiskRule


class AnalysisFailure(BaseModel):
    """Per-drug failure; siblings in the same request are unaffected."""

    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    drug: str
    reason: str
    risk: RiskCategory = RiskCategory.UNKNOWN
    confidence: float = 0.0


AnalysisOutcome = Union[AnalysisResult, AnalysisFailure]
