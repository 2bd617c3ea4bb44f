"""
knowledge_base.py — Static pharmacogenomic reference data.

Six genes, six drugs: star allele → function → activity score → metabolizer
phenotype → drug risk. Aligned with CPIC guidelines (cpicpgx.org) and
PharmGKB.

Every table is built once at import time and exposed read-only
(MappingProxyType over frozen models); nothing here is mutated afterwards,
so concurrent requests share it without locking.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from pharmaguard.models.domain import (
    AlleleFunction,
    DrugGeneRule,
    RiskCategory,
    RiskRule,
    Severity,
)

NO = AlleleFunction.NO_FUNCTION
DECREASED = AlleleFunction.DECREASED_FUNCTION
NORMAL = AlleleFunction.NORMAL_FUNCTION
INCREASED = AlleleFunction.INCREASED_FUNCTION


# ---------------------------------------------------------------------------
# Star allele function classifications
# ---------------------------------------------------------------------------

ALLELE_FUNCTIONS: Mapping[str, Mapping[str, AlleleFunction]] = MappingProxyType({
    "CYP2D6": MappingProxyType({
        "*1":   NORMAL,
        "*2":   NORMAL,
        "*3":   NO,
        "*4":   NO,
        "*5":   NO,
        "*6":   NO,
        "*9":   DECREASED,
        "*10":  DECREASED,
        "*17":  DECREASED,
        "*41":  DECREASED,
        "*1xN": INCREASED,
        "*2xN": INCREASED,
    }),
    "CYP2C19": MappingProxyType({
        "*1":  NORMAL,
        "*2":  NO,
        "*3":  NO,
        "*4":  NO,
        "*17": INCREASED,
    }),
    "CYP2C9": MappingProxyType({
        "*1": NORMAL,
        "*2": DECREASED,
        "*3": DECREASED,
    }),
    "SLCO1B1": MappingProxyType({
        "*1a": NORMAL,
        "*1b": NORMAL,
        "*5":  DECREASED,
        "*15": DECREASED,
        "*17": DECREASED,
    }),
    "TPMT": MappingProxyType({
        "*1":  NORMAL,
        "*2":  NO,
        "*3A": NO,
        "*3B": NO,
        "*3C": NO,
    }),
    "DPYD": MappingProxyType({
        "Reference":      NORMAL,
        "*2A":            NO,
        "*13":            NO,
        "c.2846A>T":      DECREASED,
        "c.1129-5923C>G": DECREASED,
    }),
})

# Allele assumed on both haplotypes when no variant is observed
DEFAULT_ALLELES: Mapping[str, str] = MappingProxyType({
    "CYP2D6":  "*1",
    "CYP2C19": "*1",
    "CYP2C9":  "*1",
    "SLCO1B1": "*1a",
    "TPMT":    "*1",
    "DPYD":    "Reference",
})


# ---------------------------------------------------------------------------
# rsID → (gene, star allele)
# ---------------------------------------------------------------------------

RSID_MAP: Mapping[str, tuple[str, str]] = MappingProxyType({
    "rs3892097":  ("CYP2D6",  "*4"),
    "rs5030655":  ("CYP2D6",  "*6"),
    "rs1065852":  ("CYP2D6",  "*10"),
    "rs28371706": ("CYP2D6",  "*17"),
    "rs28371725": ("CYP2D6",  "*41"),
    "rs4244285":  ("CYP2C19", "*2"),
    "rs4986893":  ("CYP2C19", "*3"),
    "rs12248560": ("CYP2C19", "*17"),
    "rs1799853":  ("CYP2C9",  "*2"),
    "rs1057910":  ("CYP2C9",  "*3"),
    "rs4149056":  ("SLCO1B1", "*5"),
    "rs2306283":  ("SLCO1B1", "*1b"),
    "rs1800460":  ("TPMT",    "*3B"),
    "rs1142345":  ("TPMT",    "*3C"),
    "rs1800462":  ("TPMT",    "*2"),
    "rs3918290":  ("DPYD",    "*2A"),
    "rs55886062": ("DPYD",    "*13"),
    "rs67376798": ("DPYD",    "c.2846A>T"),
    "rs75017182": ("DPYD",    "c.1129-5923C>G"),
})


# ---------------------------------------------------------------------------
# Gene biology (used by the explanation narratives)
# ---------------------------------------------------------------------------

GENE_ROLES: Mapping[str, str] = MappingProxyType({
    "CYP2D6": "a cytochrome P450 enzyme responsible for the metabolism of approximately 25% of clinically used drugs",
    "CYP2C19": "a cytochrome P450 enzyme that metabolizes several important drug classes including proton pump inhibitors and antiplatelet agents",
    "CYP2C9": "a cytochrome P450 enzyme responsible for the metabolism of many drugs including warfarin, phenytoin, and NSAIDs",
    "SLCO1B1": "a hepatic uptake transporter (OATP1B1) that mediates the hepatic uptake of statins and other drugs from portal blood",
    "TPMT": "thiopurine S-methyltransferase, an enzyme that methylates and inactivates thiopurine drugs",
    "DPYD": "dihydropyrimidine dehydrogenase, the rate-limiting enzyme in fluoropyrimidine catabolism, responsible for degrading >80% of administered 5-fluorouracil",
})


# ---------------------------------------------------------------------------
# Drug → gene rules (gene + phenotype abbreviation → RiskRule)
# ---------------------------------------------------------------------------

SAFE = RiskCategory.SAFE
ADJUST = RiskCategory.ADJUST_DOSAGE
TOXIC = RiskCategory.TOXIC
INEFFECTIVE = RiskCategory.INEFFECTIVE


def _rule(
    risk: RiskCategory,
    severity: Severity,
    confidence: float,
    recommendation: str,
    dosage_advice: str,
    alternatives: tuple[str, ...],
    mechanism: str,
) -> RiskRule:
    return RiskRule(
        risk=risk,
        severity=severity,
        confidence=confidence,
        recommendation=recommendation,
        dosage_advice=dosage_advice,
        alternatives=alternatives,
        mechanism=mechanism,
    )


_CODEINE = DrugGeneRule(
    drug="Codeine",
    gene="CYP2D6",
    description="CYP2D6 metabolizes codeine to its active form morphine",
    category="Analgesic (Opioid)",
    pharmacology="CYP2D6-activated prodrug",
    rules={
        "PM": _rule(
            INEFFECTIVE, Severity.HIGH, 0.95,
            "Avoid codeine. Use alternative analgesics not metabolized by CYP2D6 (e.g., morphine, non-opioid analgesics).",
            "Do not use codeine",
            ("Morphine", "Acetaminophen", "NSAIDs", "Tramadol (with caution)"),
            "Codeine is a prodrug that requires CYP2D6-mediated O-demethylation to morphine for analgesic effect. "
            "Poor metabolizers have negligible CYP2D6 activity, resulting in minimal conversion to morphine and inadequate pain relief.",
        ),
        "IM": _rule(
            INEFFECTIVE, Severity.MODERATE, 0.85,
            "Use codeine with caution. May have reduced analgesic effect. Consider alternative analgesics if inadequate response.",
            "Use label-recommended dose; monitor for efficacy",
            ("Morphine", "Acetaminophen"),
            "Intermediate metabolizers have reduced CYP2D6 activity, leading to decreased morphine formation "
            "and potentially suboptimal analgesic effect.",
        ),
        "NM": _rule(
            SAFE, Severity.LOW, 0.90,
            "Use codeine per standard prescribing guidelines.",
            "Standard dose as per label",
            (),
            "Normal metabolizers convert codeine to morphine at expected rates, providing standard analgesic effect.",
        ),
        "RM": _rule(
            TOXIC, Severity.HIGH, 0.90,
            "Avoid codeine due to risk of toxicity. Rapid conversion to morphine may cause respiratory depression, especially in children.",
            "Do not use codeine",
            ("Morphine (reduced dose)", "Acetaminophen", "NSAIDs"),
            "Rapid metabolizers have increased CYP2D6 activity resulting in faster and greater conversion of codeine "
            "to morphine, increasing the risk of morphine toxicity.",
        ),
        "URM": _rule(
            TOXIC, Severity.CRITICAL, 0.95,
            "AVOID codeine. Ultra-rapid metabolism leads to dangerously high morphine levels. Life-threatening toxicity risk, "
            "particularly in pediatric patients and breastfeeding mothers.",
            "CONTRAINDICATED",
            ("Morphine (carefully titrated)", "Acetaminophen", "NSAIDs"),
            "Ultra-rapid metabolizers have multiple copies of functional CYP2D6 alleles, leading to excessively rapid "
            "conversion of codeine to morphine with dangerous accumulation.",
        ),
    },
)

_WARFARIN = DrugGeneRule(
    drug="Warfarin",
    gene="CYP2C9",
    description="CYP2C9 metabolizes S-warfarin, the more potent enantiomer",
    category="Anticoagulant",
    pharmacology="CYP2C9-metabolized anticoagulant",
    rules={
        "PM": _rule(
            TOXIC, Severity.CRITICAL, 0.92,
            "Significantly reduce warfarin dose. Consider alternative anticoagulants. Increased bleeding risk.",
            "Reduce initial dose by 50-80%. Frequent INR monitoring required.",
            ("Direct Oral Anticoagulants (DOACs)", "Apixaban", "Rivaroxaban"),
            "Poor metabolizers accumulate S-warfarin due to severely reduced CYP2C9 activity, leading to excessive "
            "anticoagulation and bleeding risk.",
        ),
        "IM": _rule(
            ADJUST, Severity.MODERATE, 0.88,
            "Reduce warfarin starting dose. Closer INR monitoring recommended.",
            "Reduce initial dose by 20-40%. Monitor INR closely.",
            ("Apixaban", "Rivaroxaban"),
            "Intermediate metabolizers have reduced CYP2C9 activity, leading to higher S-warfarin levels and increased sensitivity.",
        ),
        "NM": _rule(
            SAFE, Severity.LOW, 0.90,
            "Standard warfarin dosing per clinical guidelines.",
            "Standard dose with routine INR monitoring",
            (),
            "Normal CYP2C9 metabolizers clear S-warfarin at expected rates.",
        ),
        "RM": _rule(
            ADJUST, Severity.MODERATE, 0.80,
            "May require higher warfarin doses to achieve therapeutic INR.",
            "Standard or increased dose with INR monitoring",
            (),
            "Rapid metabolizers clear S-warfarin faster, potentially requiring higher doses.",
        ),
        "URM": _rule(
            INEFFECTIVE, Severity.HIGH, 0.82,
            "Warfarin may be ineffective at standard doses. Consider higher doses or alternative anticoagulants.",
            "Significantly increased dose likely needed. Close INR monitoring.",
            ("Apixaban", "Rivaroxaban", "Edoxaban"),
            "Ultra-rapid metabolism leads to very fast clearance of S-warfarin, potentially making standard doses subtherapeutic.",
        ),
    },
)

_CLOPIDOGREL = DrugGeneRule(
    drug="Clopidogrel",
    gene="CYP2C19",
    description="CYP2C19 activates clopidogrel from prodrug to active metabolite",
    category="Antiplatelet",
    pharmacology="CYP2C19-activated antiplatelet",
    rules={
        "PM": _rule(
            INEFFECTIVE, Severity.CRITICAL, 0.93,
            "Avoid clopidogrel. Use alternative antiplatelet therapy. High risk of cardiovascular events due to lack of drug activation.",
            "CONTRAINDICATED - use alternative",
            ("Prasugrel", "Ticagrelor"),
            "Clopidogrel is a prodrug requiring CYP2C19-mediated bioactivation. Poor metabolizers cannot effectively "
            "convert clopidogrel to its active thiol metabolite, resulting in inadequate platelet inhibition.",
        ),
        "IM": _rule(
            ADJUST, Severity.HIGH, 0.87,
            "Consider alternative antiplatelet agent. If clopidogrel is used, consider platelet function testing.",
            "Alternative therapy preferred; if used, monitor platelet function",
            ("Prasugrel", "Ticagrelor"),
            "Intermediate metabolizers have reduced CYP2C19 activity, leading to decreased formation of the active "
            "metabolite and potentially suboptimal platelet inhibition.",
        ),
        "NM": _rule(
            SAFE, Severity.LOW, 0.90,
            "Standard clopidogrel dosing per clinical guidelines.",
            "Standard 75mg daily maintenance dose",
            (),
            "Normal metabolizers adequately convert clopidogrel to its active metabolite.",
        ),
        "RM": _rule(
            SAFE, Severity.LOW, 0.88,
            "Standard clopidogrel dosing. Enhanced activation may provide improved antiplatelet effect.",
            "Standard dose",
            (),
            "Rapid metabolizers efficiently convert clopidogrel to its active form, providing effective platelet inhibition.",
        ),
        "URM": _rule(
            ADJUST, Severity.MODERATE, 0.78,
            "Standard dose effective. Monitor for increased bleeding risk.",
            "Standard dose; monitor for bleeding",
            (),
            "Ultra-rapid metabolizers may generate higher levels of active metabolite, potentially increasing both "
            "efficacy and bleeding risk.",
        ),
    },
)

_SIMVASTATIN = DrugGeneRule(
    drug="Simvastatin",
    gene="SLCO1B1",
    description="SLCO1B1 transports simvastatin acid into hepatocytes for metabolism",
    category="Statin (Lipid-lowering)",
    pharmacology="SLCO1B1-transported statin",
    rules={
        "PM": _rule(
            TOXIC, Severity.CRITICAL, 0.91,
            "Avoid simvastatin. High risk of myopathy/rhabdomyolysis. Use alternative statins (e.g., pravastatin, rosuvastatin).",
            "CONTRAINDICATED at doses >20mg; consider alternatives",
            ("Pravastatin", "Rosuvastatin", "Fluvastatin"),
            "Decreased SLCO1B1 function leads to reduced hepatic uptake of simvastatin acid, causing increased systemic "
            "exposure and elevated risk of skeletal muscle toxicity.",
        ),
        "IM": _rule(
            ADJUST, Severity.HIGH, 0.88,
            "Use lower dose simvastatin (≤20mg/day) or consider alternative statin. Monitor for muscle symptoms.",
            "Maximum 20mg/day; monitor CK levels",
            ("Pravastatin", "Rosuvastatin"),
            "Partially decreased SLCO1B1 transporter function leads to moderately increased simvastatin exposure and "
            "elevated myopathy risk.",
        ),
        "NM": _rule(
            SAFE, Severity.LOW, 0.90,
            "Standard simvastatin dosing per clinical guidelines.",
            "Standard dose as per lipid targets",
            (),
            "Normal SLCO1B1 function provides adequate hepatic uptake of simvastatin acid.",
        ),
        "RM": _rule(
            SAFE, Severity.LOW, 0.85,
            "Standard dosing effective.",
            "Standard dose",
            (),
            "Normal to enhanced SLCO1B1 transport function.",
        ),
        "URM": _rule(
            SAFE, Severity.LOW, 0.80,
            "Standard dosing effective.",
            "Standard dose",
            (),
            "Enhanced SLCO1B1 transport function with efficient hepatic uptake.",
        ),
    },
)

_AZATHIOPRINE = DrugGeneRule(
    drug="Azathioprine",
    gene="TPMT",
    description="TPMT methylates thiopurine drugs; reduced activity causes toxic metabolite accumulation",
    category="Immunosuppressant",
    pharmacology="TPMT-metabolized immunosuppressant",
    rules={
        "PM": _rule(
            TOXIC, Severity.CRITICAL, 0.95,
            "Drastically reduce dose (10-fold reduction) or use alternative agent. Life-threatening myelosuppression risk.",
            "Reduce to 10% of standard dose. Thrice-weekly dosing.",
            ("Mycophenolate mofetil", "Alternative immunosuppressants"),
            "Absent TPMT activity causes accumulation of cytotoxic thioguanine nucleotides (TGN), leading to severe "
            "and potentially fatal myelosuppression.",
        ),
        "IM": _rule(
            ADJUST, Severity.HIGH, 0.90,
            "Reduce starting dose by 30-70%. Monitor CBC weekly for first months.",
            "Start at 30-70% of standard dose",
            ("Mycophenolate mofetil",),
            "Reduced TPMT activity leads to higher TGN levels with increased risk of dose-dependent myelosuppression.",
        ),
        "NM": _rule(
            SAFE, Severity.LOW, 0.90,
            "Standard azathioprine dosing. Routine monitoring recommended.",
            "Standard dose (2-3 mg/kg/day)",
            (),
            "Normal TPMT activity provides adequate metabolism of thiopurines.",
        ),
        "RM": _rule(
            ADJUST, Severity.MODERATE, 0.78,
            "May require higher doses. Monitor for therapeutic efficacy.",
            "Standard or increased dose with efficacy monitoring",
            (),
            "Increased TPMT activity leads to greater inactivation of thiopurines, potentially reducing therapeutic effect.",
        ),
        "URM": _rule(
            INEFFECTIVE, Severity.HIGH, 0.80,
            "Standard doses may be ineffective. Consider higher doses or alternative immunosuppressants.",
            "Increased dose may be needed; monitor TGN levels",
            ("Mycophenolate mofetil", "Alternative immunosuppressants"),
            "Ultra-rapid TPMT activity excessively inactivates azathioprine, leading to subtherapeutic TGN levels.",
        ),
    },
)

_FLUOROURACIL = DrugGeneRule(
    drug="Fluorouracil",
    gene="DPYD",
    description="DPD (encoded by DPYD) catabolizes >80% of administered fluorouracil",
    category="Antineoplastic",
    pharmacology="DPYD-catabolized antimetabolite",
    rules={
        "PM": _rule(
            TOXIC, Severity.CRITICAL, 0.95,
            "AVOID fluorouracil and capecitabine. Complete DPD deficiency causes life-threatening toxicity.",
            "CONTRAINDICATED",
            ("Alternative chemotherapy regimens (consult oncologist)",),
            "Complete DPD deficiency prevents catabolism of fluorouracil, causing massive accumulation of cytotoxic "
            "metabolites leading to severe mucositis, myelosuppression, neurotoxicity, and potentially death.",
        ),
        "IM": _rule(
            ADJUST, Severity.CRITICAL, 0.92,
            "Reduce fluorouracil dose by at least 50%. Close monitoring with dose titration based on toxicity.",
            "Reduce to 25-50% of standard dose",
            ("Dose-adjusted regimen with TDM",),
            "Partial DPD deficiency leads to reduced fluorouracil clearance and increased exposure to cytotoxic metabolites.",
        ),
        "NM": _rule(
            SAFE, Severity.LOW, 0.90,
            "Standard fluorouracil dosing per oncology protocol.",
            "Standard dose per BSA calculation",
            (),
            "Normal DPD activity provides expected fluorouracil catabolism.",
        ),
        "RM": _rule(
            SAFE, Severity.LOW, 0.82,
            "Standard dosing. Monitor for therapeutic efficacy.",
            "Standard dose; consider TDM",
            (),
            "Enhanced DPD activity with adequate drug catabolism.",
        ),
        "URM": _rule(
            INEFFECTIVE, Severity.HIGH, 0.78,
            "Fluorouracil may be rapidly inactivated. Consider dose increase with therapeutic drug monitoring or alternative agents.",
            "Higher doses may be needed; TDM recommended",
            ("Alternative chemotherapy regimens",),
            "Ultra-rapid DPD activity may excessively catabolize fluorouracil before therapeutic effect.",
        ),
    },
)

DRUG_GENE_RULES: Mapping[str, DrugGeneRule] = MappingProxyType({
    rule.drug: rule
    for rule in (_CODEINE, _WARFARIN, _CLOPIDOGREL, _SIMVASTATIN, _AZATHIOPRINE, _FLUOROURACIL)
})


# ---------------------------------------------------------------------------
# Monitoring plans: drug → risk category → steps
# ---------------------------------------------------------------------------

MONITORING_PLANS: Mapping[str, Mapping[RiskCategory, tuple[str, ...]]] = MappingProxyType({
    "Codeine": MappingProxyType({
        TOXIC: ("Monitor for respiratory depression", "Watch for excessive sedation",
                "Check for nausea/vomiting", "Assess pain control adequacy"),
        INEFFECTIVE: ("Monitor pain control", "Assess need for alternative analgesic",
                      "Document inadequate response"),
        SAFE: ("Standard pain assessment", "Routine monitoring"),
    }),
    "Warfarin": MappingProxyType({
        TOXIC: ("INR monitoring 2-3x weekly initially", "Watch for signs of bleeding",
                "Monitor for bruising", "Check stool for occult blood"),
        ADJUST: ("INR monitoring weekly initially", "Assess for bleeding signs",
                 "Titrate dose based on INR"),
        SAFE: ("Routine INR monitoring", "Standard follow-up"),
    }),
    "Clopidogrel": MappingProxyType({
        INEFFECTIVE: ("Platelet function testing", "Monitor for cardiovascular events",
                      "Assess stent thrombosis risk"),
        ADJUST: ("Platelet function testing recommended", "Clinical response monitoring"),
        SAFE: ("Standard follow-up", "Routine monitoring"),
    }),
    "Simvastatin": MappingProxyType({
        TOXIC: ("Monitor CK levels", "Assess for muscle pain/weakness", "Check LFTs",
                "Watch for dark urine (rhabdomyolysis)"),
        ADJUST: ("CK monitoring monthly initially", "Assess muscle symptoms", "Monitor lipid levels"),
        SAFE: ("Routine lipid panel", "Standard LFT monitoring"),
    }),
    "Azathioprine": MappingProxyType({
        TOXIC: ("CBC with differential weekly x8 weeks", "Then biweekly x4 months",
                "Monitor for infections", "Watch for myelosuppression signs"),
        ADJUST: ("CBC weekly x4 weeks, then monthly", "Monitor for infection",
                 "Assess therapeutic response"),
        SAFE: ("Routine CBC monitoring", "Standard follow-up"),
    }),
    "Fluorouracil": MappingProxyType({
        TOXIC: ("Daily assessment for mucositis", "CBC monitoring", "Monitor for neurotoxicity",
                "Watch for hand-foot syndrome"),
        ADJUST: ("CBC 2x weekly", "Daily mucositis assessment", "Dose adjustment per toxicity"),
        SAFE: ("Standard oncology monitoring", "Routine CBC"),
    }),
})

GENERIC_MONITORING_PLAN: tuple[str, ...] = ("Clinical monitoring as appropriate",)

