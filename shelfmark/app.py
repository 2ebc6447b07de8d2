#!/usr/bin/env python3

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from shelfmark.routes import api
from shelfmark.core.exceptions import CirculationError, DatabaseError, LedgerInconsistencyError
from shelfmark.configs import OPTIONS, CORS_ORIGINS
from shelfmark import __version__ as VERSION

app = FastAPI(
    title="Shelfmark API",
    description="Shelfmark: library circulation, inventory and fines",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CirculationError, api.circulation_error_response)
app.add_exception_handler(DatabaseError, api.database_error_response)
app.add_exception_handler(LedgerInconsistencyError, api.ledger_error_response)

app.include_router(api.router, prefix="/v1/api")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("shelfmark.app:app", **OPTIONS)
