from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import crud
from .calculations import InvalidRangeError, month_bounds, overtime_range
from .config import configure_logging, settings
from .db import get_db, session_scope
from .schemas import (
    AppSettingsOut,
    ContractIn,
    ContractOut,
    MonthlySummaryOut,
    SettingsIn,
    TimeEntryIn,
    TimeEntryOut,
)
from .summary import InvalidMonthError, parse_month_param, summarize_month

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)


@app.exception_handler(InvalidRangeError)
def invalid_range_handler(request: Request, exc: InvalidRangeError) -> JSONResponse:
    logger.warning("rejected time range on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def parse_month(value: str | None) -> tuple[int, int]:
    try:
        return parse_month_param(value)
    except InvalidMonthError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def get_contract_or_404(db: Session, contract_id: int):
    contract = crud.get_contract(db, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


def build_month_summary(contract_id: int, year: int, month: int) -> MonthlySummaryOut:
    with session_scope() as db:
        contract = get_contract_or_404(db, contract_id)
        app_settings = crud.get_or_create_app_settings(db)
        span = overtime_range(year, month)
        entries = crud.list_time_entries(db, contract_id, span.start, span.end)

        return summarize_month(
            contract,
            entries,
            year,
            month,
            net_coefficient=app_settings.net_coefficient,
            weekly_overtime_threshold=settings.weekly_overtime_threshold,
        )


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

@app.get("/api/contracts")
def api_list_contracts(db: Session = Depends(get_db)):
    return {
        "contracts": [ContractOut.model_validate(c) for c in crud.list_contracts(db)]
    }


@app.post("/api/contracts", status_code=201)
def api_create_contract(payload: ContractIn, db: Session = Depends(get_db)):
    contract = crud.create_contract(db, payload)
    db.commit()
    return {"contract": ContractOut.model_validate(contract)}


@app.get("/api/contracts/{contract_id}")
def api_get_contract(contract_id: int, db: Session = Depends(get_db)):
    return {"contract": ContractOut.model_validate(get_contract_or_404(db, contract_id))}


@app.put("/api/contracts/{contract_id}")
def api_update_contract(contract_id: int, payload: ContractIn, db: Session = Depends(get_db)):
    contract = crud.update_contract(db, get_contract_or_404(db, contract_id), payload)
    db.commit()
    return {"contract": ContractOut.model_validate(contract)}


@app.delete("/api/contracts/{contract_id}")
def api_delete_contract(contract_id: int, db: Session = Depends(get_db)):
    if not crud.delete_contract(db, contract_id):
        raise HTTPException(status_code=404, detail="Contract not found")
    db.commit()
    return {"ok": True}


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------

@app.get("/api/contracts/{contract_id}/entries")
def api_list_entries(
    contract_id: int,
    month: str | None = None,
    db: Session = Depends(get_db),
):
    get_contract_or_404(db, contract_id)
    if month:
        bounds = month_bounds(*parse_month(month))
        items = crud.list_time_entries(db, contract_id, bounds.start, bounds.end)
    else:
        items = crud.list_time_entries(db, contract_id)
    return {"entries": [TimeEntryOut.model_validate(e) for e in items]}


@app.post("/api/contracts/{contract_id}/entries", status_code=201)
def api_upsert_entry(contract_id: int, payload: TimeEntryIn, db: Session = Depends(get_db)):
    get_contract_or_404(db, contract_id)
    entry = crud.upsert_time_entry(db, contract_id=contract_id, payload=payload)
    db.commit()
    return {"entry": TimeEntryOut.model_validate(entry)}


@app.put("/api/entries/{entry_id}")
def api_update_entry(entry_id: int, payload: TimeEntryIn, db: Session = Depends(get_db)):
    entry = crud.get_time_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found")
    try:
        crud.update_time_entry(db, entry, payload)
    except crud.DuplicateEntryDateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    db.commit()
    return {"entry": TimeEntryOut.model_validate(entry)}


@app.delete("/api/entries/{entry_id}")
def api_delete_entry(entry_id: int, db: Session = Depends(get_db)):
    if not crud.delete_time_entry(db, entry_id):
        raise HTTPException(status_code=404, detail="Entry not found")
    db.commit()
    return {"ok": True}


# ---------------------------------------------------------------------------
# Summary & settings
# ---------------------------------------------------------------------------

@app.get("/api/contracts/{contract_id}/summary", response_model=MonthlySummaryOut)
def api_monthly_summary(contract_id: int, month: str | None = None):
    year, month_number = parse_month(month)
    return build_month_summary(contract_id, year, month_number)


@app.get("/api/settings")
def api_get_settings(db: Session = Depends(get_db)):
    app_settings = crud.get_or_create_app_settings(db)
    db.commit()
    return {"settings": AppSettingsOut.model_validate(app_settings)}


@app.put("/api/settings")
def api_update_settings(payload: SettingsIn, db: Session = Depends(get_db)):
    app_settings = crud.update_reference_grid(db, payload.reference_grid)
    db.commit()
    return {"settings": AppSettingsOut.model_validate(app_settings)}
