"""
main.py — PharmaGuard FastAPI application.

Routes
------
GET  /              — service index
GET  /health        — liveness probe
GET  /api/drugs     — supported drug catalogue
POST /api/analyze   — full analysis pipeline (VCF upload + drug list)

Data flow (POST /api/analyze)
------------------------------
1. Validate multipart form fields (vcf_file, drugs, optional patient_id).
2. vcf_parser         → ParseResult (raises VCFParseError with every
                        structural problem found)
3. analysis_pipeline  → one report per requested drug, in request order;
                        unsupported drugs become error entries.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pharmaguard import config
from pharmaguard.models.schemas import AnalysisReport, DrugCatalogueEntry, utc_now_iso
from pharmaguard.services.analysis_pipeline import analyze_parsed, split_drug_list
from pharmaguard.services.knowledge_base import DRUG_GENE_RULES
from pharmaguard.services.vcf_parser import parse_vcf_bytes
from pharmaguard.utils.exceptions import (
    FileValidationError,
    NoDrugsSpecifiedError,
    register_exception_handlers,
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title=config.SERVICE_NAME,
    description=(
        "Pharmacogenomics backend: parse VCF files, resolve diplotypes and "
        "metabolizer phenotypes, and return CPIC-aligned drug risk reports."
    ),
    version=config.SERVICE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register custom exception handlers
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

@app.on_event("startup")
async def startup_event() -> None:
    logger.info("%s %s starting up.", config.SERVICE_NAME, config.SERVICE_VERSION)
    logger.info("Supported drugs: %s", ", ".join(config.SUPPORTED_DRUGS))
    logger.info("Supported genes: %s", ", ".join(config.SUPPORTED_GENES))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _validate_file(file: UploadFile) -> None:
    """Check the upload's file extension."""
    filename = file.filename or ""
    if not filename.lower().endswith(config.ALLOWED_VCF_EXTENSIONS):
        raise FileValidationError(
            f"Unsupported file type '{Path(filename).suffix}'. "
            f"Allowed: {', '.join(config.ALLOWED_VCF_EXTENSIONS)}"
        )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/", summary="Service index", tags=["Utility"])
async def index() -> dict[str, Any]:
    return {
        "message": f"Welcome to {config.SERVICE_NAME}",
        "description": "Pharmacogenomic Risk Prediction System",
        "endpoints": [
            {"path": "/", "method": "GET", "description": "API index and service discovery"},
            {"path": "/health", "method": "GET", "description": "Service health check"},
            {"path": "/api/drugs", "method": "GET", "description": "List of supported drugs"},
            {
                "path": "/api/analyze",
                "method": "POST",
                "description": "Analyze VCF file for drug risks (form-data: vcf_file, drugs)",
            },
        ],
    }


@app.get("/health", summary="Health check", tags=["Utility"])
async def health_check() -> dict[str, Any]:
    """Simple liveness probe. Returns 200 when the server is up."""
    return {
        "status": "healthy",
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "timestamp": utc_now_iso(),
        "supported_drugs": list(config.SUPPORTED_DRUGS),
        "supported_genes": list(config.SUPPORTED_GENES),
    }


@app.get(
    "/api/drugs",
    summary="Supported drugs",
    tags=["API"],
    response_model=dict[str, list[DrugCatalogueEntry]],
)
async def list_drugs() -> dict[str, list[DrugCatalogueEntry]]:
    return {
        "drugs": [
            DrugCatalogueEntry(name=rule.drug, gene=rule.gene, category=rule.category)
            for rule in DRUG_GENE_RULES.values()
        ]
    }


@app.post(
    "/api/analyze",
    summary="Analyse VCF for pharmacogenomic drug risk",
    tags=["API"],
    response_model=list[AnalysisReport],
    status_code=status.HTTP_200_OK,
)
async def analyze(
    drugs: str = Form(..., description="Comma-separated drug names, e.g. 'Codeine, Warfarin'"),
    vcf_file: UploadFile = File(..., description="VCF v4.2 file (.vcf)"),
    patient_id: Optional[str] = Form(None, description="Patient identifier; generated when omitted"),
) -> list[AnalysisReport]:
    """
    Full pharmacogenomic analysis pipeline.

    1. Validates the drug list and file type / size.
    2. Validates and parses the VCF (all structural errors reported at once).
    3. Runs allele resolution, phenotype scoring and rule dispatch per drug.
    4. Returns one report per requested drug, in request order.
    """
    drug_list = split_drug_list(drugs)
    if not drug_list:
        raise NoDrugsSpecifiedError()
    _validate_file(vcf_file)

    vcf_bytes = await vcf_file.read()
    if len(vcf_bytes) > config.MAX_VCF_SIZE_BYTES:
        raise FileValidationError(
            f"File too large. Maximum size is {config.MAX_VCF_SIZE_MB}MB."
        )

    logger.info(
        "Received /api/analyze: drugs=%s file=%s size=%d bytes",
        drug_list, vcf_file.filename, len(vcf_bytes),
    )

    # raises VCFParseError if invalid, FileValidationError if it inflates past the limit
    parsed = parse_vcf_bytes(vcf_bytes, max_size=config.MAX_VCF_SIZE_BYTES)
    patient_id = (patient_id or "").strip() or None
    return analyze_parsed(parsed, drug_list, patient_id)


# ---------------------------------------------------------------------------
# Generic HTTP-exception fallback (for anything FastAPI raises internally)
# ---------------------------------------------------------------------------

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_type": "HTTPException"},
    )
