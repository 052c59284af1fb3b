from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voting_node.api import voting
from voting_node.config import configure_logging, get_cors_origins, load_config
from voting_node.storage import open_store
from voting_node.voting_runtime.service import ProposalService
from voting_node.voting_runtime.sweeper import FinalizationSweeper

log = logging.getLogger(__name__)


def create_app(
    cfg: Optional[Dict[str, Any]] = None,
    service: Optional[ProposalService] = None,
) -> FastAPI:
    cfg = cfg or load_config()
    configure_logging(cfg)

    if service is None:
        service = ProposalService(open_store(cfg), cfg)

    fin = cfg.get("finalization", {})
    sweeper: Optional[FinalizationSweeper] = None
    if fin.get("sweep_enabled"):
        sweeper = FinalizationSweeper(service.finalizer, interval_sec=float(fin.get("sweep_interval_sec", 30)))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sweeper is not None:
            sweeper.start()
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.stop()
            service.store.close()

    app = FastAPI(title="Voting Node API", lifespan=lifespan)
    app.state.cfg = cfg
    app.state.service = service
    app.state.sweeper = sweeper

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(cfg),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(voting.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    log.info("voting node app created (store=%s)", type(service.store).__name__)
    return app
