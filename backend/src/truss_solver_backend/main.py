from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from truss_solver_backend.api.routes import router as rigging_router
from truss_solver_backend.solver.mesh import DEFAULT_ELEMENTS


def create_app() -> FastAPI:
    """Create and configure the FastAPI instance for the rigging solver backend."""
    app = FastAPI(title="Truss Rigging Solver API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rigging_router, prefix="/api", tags=["rigging"])

    @app.get("/health", tags=["health"])
    async def health():
        """Report liveness and the mesh density used when a request omits it."""
        return {"status": "ok", "service": "truss-rigging-solver", "default_elements": DEFAULT_ELEMENTS}

    return app


app = create_app()
