"""Bullion AML/CTF Compliance API.

Compliance decision service for a precious-metals retailer: threshold
requirements (KYC / TTR / EDD), transaction and business risk scoring,
structuring detection, sanctions screening, regulatory report generation
and EDD investigation case management.

Run with:
    python3 -m uvicorn bullion_aml.main:app --host 0.0.0.0 --port 8000
"""

import json
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List

from fastapi import FastAPI

from bullion_aml.compliance.business_risk import HIGH_RISK_INDUSTRIES
from bullion_aml.compliance.edd import EDDService
from bullion_aml.compliance.engine import ComplianceEngine
from bullion_aml.config import settings
from bullion_aml.models import ComplianceConfig, SanctionedEntity
from bullion_aml.routes import (
    audit,
    business,
    checkout,
    customers,
    edd,
    reports,
    rules,
    transactions,
)
from bullion_aml.storage.memory import MemoryStore

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _load_json(path: Path, default: Any) -> Any:
    if not path.exists():
        logger.warning("Reference data %s not found, using defaults", path)
        return default
    with open(path, "r") as f:
        return json.load(f)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load reference data and initialize the compliance services."""
    data_dir = settings.DATA_DIR

    # DFAT-style consolidated sanctions list
    raw_entities: List[Dict[str, Any]] = _load_json(data_dir / "sanctions_list.json", [])
    sanctions_list = [SanctionedEntity(**e) for e in raw_entities]

    # High-risk ANZSIC industry codes for business scoring
    high_risk_industries = set(
        _load_json(data_dir / "high_risk_industries.json", sorted(HIGH_RISK_INDUSTRIES))
    )

    # Tunable rule thresholds (or use defaults)
    config = ComplianceConfig(**_load_json(data_dir / "compliance_config.json", {}))

    store = MemoryStore()
    engine = ComplianceEngine(
        sanctions_list=sanctions_list,
        store=store,
        config=config,
        usd_to_aud_rate=settings.USD_TO_AUD_RATE,
    )

    # Attach to app state for dependency injection in routes
    app.state.engine = engine
    app.state.edd = EDDService(store)
    app.state.store = store
    app.state.config = config
    app.state.high_risk_industries = high_risk_industries

    logger.info(
        "Starting %s v%s with %d sanctioned entities",
        settings.APP_NAME,
        settings.APP_VERSION,
        len(sanctions_list),
    )
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "AML/CTF compliance decisions for bullion purchases: KYC and TTR "
        "thresholds, risk scoring, structuring detection, sanctions "
        "screening, SMR/TTR generation and EDD investigations."
    ),
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Mount all API routers
app.include_router(customers.router)
app.include_router(checkout.router)
app.include_router(transactions.router)
app.include_router(business.router)
app.include_router(edd.router)
app.include_router(reports.router)
app.include_router(rules.router)
app.include_router(audit.router)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "healthy"}
