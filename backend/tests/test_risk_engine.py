"""
tests/test_risk_engine.py
Unit tests for pharmaguard.services.risk_engine
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from pharmaguard.models.domain import (
    AnalysisFailure,
    AnalysisResult,
    DrugGeneRule,
    RiskCategory,
    RiskRule,
    Severity,
    Zygosity,
)
from pharmaguard.services.knowledge_base import (
    DRUG_GENE_RULES,
    GENERIC_MONITORING_PLAN,
    MONITORING_PLANS,
)
from pharmaguard.services.risk_engine import (
    assess_drug,
    get_drug_rule,
    normalize_drug_name,
    predict_risks,
    resolve_monitoring_plan,
    resolve_risk_rule,
)
from pharmaguard.services.vcf_parser import parse_vcf_text
from pharmaguard.utils.exceptions import DrugNotSupportedError
from tests.conftest import MINIMAL_VCF

SAFE = RiskCategory.SAFE
ADJUST = RiskCategory.ADJUST_DOSAGE
TOXIC = RiskCategory.TOXIC
INEFFECTIVE = RiskCategory.INEFFECTIVE

LOW = Severity.LOW
MODERATE = Severity.MODERATE
HIGH = Severity.HIGH
CRITICAL = Severity.CRITICAL


# ── Helpers ───────────────────────────────────────────────────────────────

def _rule(risk=SAFE, severity=LOW, confidence=0.9):
    return RiskRule(
        risk=risk,
        severity=severity,
        confidence=confidence,
        recommendation="Use standard dosing",
        dosage_advice="Standard dose",
        mechanism="Normal metabolism",
    )


@pytest.fixture(scope="module")
def minimal_variants():
    return parse_vcf_text(MINIMAL_VCF).variants


# ── normalize_drug_name / get_drug_rule ───────────────────────────────────

class TestDrugLookup:

    @pytest.mark.parametrize("raw", ["codeine", "CODEINE", "  Codeine  ", "cOdEiNe"])
    def test_case_and_whitespace_insensitive(self, raw):
        assert normalize_drug_name(raw) == "Codeine"

    def test_unknown_drug_is_none(self):
        assert normalize_drug_name("Aspirin") is None

    def test_get_drug_rule_returns_gene(self):
        assert get_drug_rule("warfarin").gene == "CYP2C9"

    def test_get_drug_rule_unsupported_raises(self):
        with pytest.raises(DrugNotSupportedError) as excinfo:
            get_drug_rule(" Aspirin ")
        assert excinfo.value.drug == "Aspirin"
        assert excinfo.value.status_code == 400

    @pytest.mark.parametrize("drug, gene", [
        ("Codeine", "CYP2D6"),
        ("Warfarin", "CYP2C9"),
        ("Clopidogrel", "CYP2C19"),
        ("Simvastatin", "SLCO1B1"),
        ("Azathioprine", "TPMT"),
        ("Fluorouracil", "DPYD"),
    ])
    def test_drug_gene_pairs(self, drug, gene):
        assert get_drug_rule(drug).gene == gene


# ── resolve_risk_rule ─────────────────────────────────────────────────────

class TestResolveRiskRule:

    @pytest.mark.parametrize("drug, phenotype, risk, severity, confidence", [
        ("Codeine", "PM", INEFFECTIVE, HIGH, 0.95),
        ("Codeine", "IM", INEFFECTIVE, MODERATE, 0.85),
        ("Codeine", "NM", SAFE, LOW, 0.90),
        ("Codeine", "RM", TOXIC, HIGH, 0.90),
        ("Codeine", "URM", TOXIC, CRITICAL, 0.95),
        ("Warfarin", "PM", TOXIC, CRITICAL, 0.92),
        ("Warfarin", "IM", ADJUST, MODERATE, 0.88),
        ("Warfarin", "NM", SAFE, LOW, 0.90),
        ("Warfarin", "RM", ADJUST, MODERATE, 0.80),
        ("Warfarin", "URM", INEFFECTIVE, HIGH, 0.82),
        ("Clopidogrel", "PM", INEFFECTIVE, CRITICAL, 0.93),
        ("Clopidogrel", "IM", ADJUST, HIGH, 0.87),
        ("Clopidogrel", "NM", SAFE, LOW, 0.90),
        ("Clopidogrel", "RM", SAFE, LOW, 0.88),
        ("Clopidogrel", "URM", ADJUST, MODERATE, 0.78),
        ("Simvastatin", "PM", TOXIC, CRITICAL, 0.91),
        ("Simvastatin", "IM", ADJUST, HIGH, 0.88),
        ("Simvastatin", "NM", SAFE, LOW, 0.90),
        ("Simvastatin", "RM", SAFE, LOW, 0.85),
        ("Simvastatin", "URM", SAFE, LOW, 0.80),
        ("Azathioprine", "PM", TOXIC, CRITICAL, 0.95),
        ("Azathioprine", "IM", ADJUST, HIGH, 0.90),
        ("Azathioprine", "NM", SAFE, LOW, 0.90),
        ("Azathioprine", "RM", ADJUST, MODERATE, 0.78),
        ("Azathioprine", "URM", INEFFECTIVE, HIGH, 0.80),
        ("Fluorouracil", "PM", TOXIC, CRITICAL, 0.95),
        ("Fluorouracil", "IM", ADJUST, CRITICAL, 0.92),
        ("Fluorouracil", "NM", SAFE, LOW, 0.90),
        ("Fluorouracil", "RM", SAFE, LOW, 0.82),
        ("Fluorouracil", "URM", INEFFECTIVE, HIGH, 0.78),
    ])
    def test_rule_table(self, drug, phenotype, risk, severity, confidence):
        rule = resolve_risk_rule(DRUG_GENE_RULES[drug], phenotype)
        assert rule.risk is risk
        assert rule.severity is severity
        assert rule.confidence == pytest.approx(confidence)

    def test_every_rule_has_text(self):
        for drug_rule in DRUG_GENE_RULES.values():
            for rule in drug_rule.rules.values():
                assert rule.recommendation
                assert rule.dosage_advice
                assert rule.mechanism

    def test_missing_phenotype_falls_back_to_nm(self):
        nm = _rule()
        drug_rule = DrugGeneRule(
            drug="Testdrug",
            gene="CYP2D6",
            description="test",
            category="test",
            pharmacology="test",
            rules={"NM": nm, "PM": _rule(TOXIC, CRITICAL)},
        )
        assert resolve_risk_rule(drug_rule, "URM") == nm
        assert resolve_risk_rule(drug_rule, "PM").risk is TOXIC


# ── knowledge base tables ──────────────────────────────────────────────────

class TestRuleTablesReadOnly:

    def test_rule_table_rejects_item_assignment(self):
        with pytest.raises(TypeError):
            DRUG_GENE_RULES["Warfarin"].rules["NM"] = _rule(TOXIC, CRITICAL)
        assert predict_risks([], ["Warfarin"])[0].rule.risk is SAFE

    def test_rule_table_rejects_deletion(self):
        with pytest.raises(TypeError):
            del DRUG_GENE_RULES["Codeine"].rules["PM"]

    def test_drug_table_rejects_item_assignment(self):
        with pytest.raises(TypeError):
            DRUG_GENE_RULES["Aspirin"] = DRUG_GENE_RULES["Codeine"]

    def test_monitoring_plans_reject_item_assignment(self):
        with pytest.raises(TypeError):
            MONITORING_PLANS["Codeine"][ADJUST] = ("Nothing",)

    def test_source_dict_changes_do_not_leak(self):
        source = {"NM": _rule()}
        drug_rule = DrugGeneRule(
            drug="Testdrug", gene="CYP2D6", description="test",
            category="test", pharmacology="test", rules=source,
        )
        source["PM"] = _rule(TOXIC, CRITICAL)
        assert "PM" not in drug_rule.rules

    def test_unknown_phenotype_key_rejected(self):
        with pytest.raises(ValidationError):
            DrugGeneRule(
                drug="Testdrug", gene="CYP2D6", description="test",
                category="test", pharmacology="test", rules={"XM": _rule()},
            )

    def test_rules_dump_as_plain_dict(self):
        dumped = DRUG_GENE_RULES["Codeine"].model_dump(mode="json")
        assert set(dumped["rules"]) == {"PM", "IM", "NM", "RM", "URM"}
        assert dumped["rules"]["PM"]["risk"] == "Ineffective"


# ── resolve_monitoring_plan ───────────────────────────────────────────────

class TestResolveMonitoringPlan:

    def test_exact_plan(self):
        assert resolve_monitoring_plan("Warfarin", TOXIC) == MONITORING_PLANS["Warfarin"][TOXIC]

    def test_falls_back_to_safe_plan(self):
        # Codeine has no Adjust Dosage plan
        assert resolve_monitoring_plan("Codeine", ADJUST) == MONITORING_PLANS["Codeine"][SAFE]

    def test_unknown_drug_gets_generic_plan(self):
        assert resolve_monitoring_plan("Aspirin", SAFE) == GENERIC_MONITORING_PLAN


# ── assess_drug / predict_risks ───────────────────────────────────────────

class TestPredictRisks:

    def test_one_outcome_per_drug_in_order(self, minimal_variants):
        drugs = ["Warfarin", "Codeine", "Fluorouracil"]
        outcomes = predict_risks(minimal_variants, drugs)
        assert [o.drug for o in outcomes] == drugs

    def test_minimal_vcf_outcomes(self, minimal_variants):
        drugs = ["Codeine", "Clopidogrel", "Warfarin", "Simvastatin", "Azathioprine", "Fluorouracil"]
        outcomes = {o.drug: o for o in predict_risks(minimal_variants, drugs)}
        expected = {
            "Codeine": ("*4/*4", "PM", INEFFECTIVE),
            "Clopidogrel": ("*1/*2", "IM", ADJUST),
            "Warfarin": ("*1/*2", "NM", SAFE),
            "Simvastatin": ("*1a/*5", "NM", SAFE),
            "Azathioprine": ("*1/*1", "NM", SAFE),
            "Fluorouracil": ("Reference/*2A", "IM", ADJUST),
        }
        for drug, (diplotype, abbreviation, risk) in expected.items():
            outcome = outcomes[drug]
            assert isinstance(outcome, AnalysisResult)
            assert outcome.phenotype.diplotype == diplotype
            assert outcome.phenotype.abbreviation == abbreviation
            assert outcome.rule.risk is risk

    def test_codeine_poor_metabolizer_from_rsid(self, make_record):
        variants = [make_record(gene="CYP2D6", star="*4", rsid="rs3892097",
                                zygosity=Zygosity.HOMOZYGOUS_ALTERNATE)]
        outcome = predict_risks(variants, ["codeine"])[0]
        assert outcome.drug == "Codeine"
        assert outcome.phenotype.activity_score == 0.0
        assert outcome.rule.risk is INEFFECTIVE
        assert outcome.rule.severity is HIGH
        assert outcome.rule.confidence == pytest.approx(0.95)

    def test_no_variants_for_gene_is_safe(self):
        outcome = predict_risks([], ["Warfarin"])[0]
        assert isinstance(outcome, AnalysisResult)
        assert outcome.phenotype.diplotype == "*1/*1"
        assert outcome.phenotype.activity_score == 2.0
        assert outcome.rule.risk is SAFE
        assert outcome.variants == ()

    def test_unsupported_drug_does_not_affect_siblings(self, minimal_variants):
        outcomes = predict_risks(minimal_variants, ["Codeine", "Aspirin", "Warfarin"])
        assert isinstance(outcomes[0], AnalysisResult)
        assert isinstance(outcomes[1], AnalysisFailure)
        assert isinstance(outcomes[2], AnalysisResult)

    def test_failure_fields(self):
        failure = predict_risks([], ["Aspirin"])[0]
        assert failure.status == "error"
        assert failure.drug == "Aspirin"
        assert failure.reason == "Unsupported drug: Aspirin"
        assert failure.risk is RiskCategory.UNKNOWN
        assert failure.confidence == 0.0

    def test_only_governing_gene_variants_attached(self, minimal_variants):
        outcome = predict_risks(minimal_variants, ["Clopidogrel"])[0]
        assert {v.gene for v in outcome.variants} == {"CYP2C19"}

    def test_assess_drug_uses_gene_groups(self, make_record):
        groups = {"TPMT": [make_record(gene="TPMT", star="*3B",
                                       zygosity=Zygosity.HOMOZYGOUS_ALTERNATE)]}
        outcome = assess_drug("Azathioprine", groups)
        assert outcome.phenotype.abbreviation == "PM"
        assert outcome.rule.risk is TOXIC
        assert outcome.rule.severity is CRITICAL

    def test_deterministic(self, minimal_variants):
        drugs = ["Codeine", "Warfarin"]
        assert predict_risks(minimal_variants, drugs) == predict_risks(minimal_variants, drugs)
