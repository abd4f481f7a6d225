"""
Composition root for the HTTP app.

Builds the catalog, session store, predicate registry, engine and service
once per process (@lru_cache) and picks the storage backend from settings.

Tests override get_diagnostic_service through app.dependency_overrides.
"""

import random
from functools import lru_cache
from fastapi import Depends

from ..config import settings
from ..repositories.catalog import StepCatalog, StaticStepCatalog, SQLStepCatalog
from ..repositories.session import SessionRepository, InMemorySessionRepository, SQLSessionRepository
from ..execution.engine import DiagnosticEngine
from ..execution.predicates import PredicateRegistry
from ..services.diagnostics import DiagnosticService

# Predicate Registry (Singleton)
# Custom rules/conditions are registered here at startup.
@lru_cache()
def get_predicate_registry() -> PredicateRegistry:
    return PredicateRegistry()

# Step Catalog (Singleton)
@lru_cache()
def get_step_catalog() -> StepCatalog:
    if settings.STORAGE_BACKEND == "database":
        return SQLStepCatalog()
    return StaticStepCatalog()

# Session Repository (Singleton)
# Cached, otherwise the in-memory store would be empty on every request
@lru_cache()
def get_session_repository() -> SessionRepository:
    if settings.STORAGE_BACKEND == "database":
        return SQLSessionRepository()
    return InMemorySessionRepository()

# The Engine (Singleton Service)
@lru_cache()
def get_diagnostic_engine(
    catalog: StepCatalog = Depends(get_step_catalog),
    registry: PredicateRegistry = Depends(get_predicate_registry),
) -> DiagnosticEngine:
    return DiagnosticEngine(
        catalog=catalog,
        registry=registry,
        max_attempts=settings.MAX_RETRY_ATTEMPTS,
        rng=random.Random(settings.RANDOM_SEED),
    )

# The Diagnostic Service (Singleton Service)
@lru_cache()
def get_diagnostic_service(
    session_repo: SessionRepository = Depends(get_session_repository),
    catalog: StepCatalog = Depends(get_step_catalog),
    engine: DiagnosticEngine = Depends(get_diagnostic_engine),
) -> DiagnosticService:
    """
    Injects all necessary components into the DiagnosticService.
    """
    return DiagnosticService(
        session_repository=session_repo,
        step_catalog=catalog,
        engine=engine,
    )
