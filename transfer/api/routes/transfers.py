"""Transfer check, creation and status endpoints."""

import logging
from fastapi import APIRouter, HTTPException, BackgroundTasks

from ..models import (
    CheckResponse,
    TransferCreate,
    TransferListResponse,
    TransferResponse,
)
from ..storage import transfer_storage
from ...exceptions import ConfigurationError, ConnectivityError
from ...models.transfer import TransferConfig, TransferRun, TransferStatus
from ...registry import create_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def _config(data: TransferCreate) -> TransferConfig:
    try:
        return TransferConfig.from_dict(data.model_dump())
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message)


def _response(run: TransferRun) -> TransferResponse:
    return TransferResponse(**run.to_dict())


@router.post("/check", response_model=CheckResponse)
def check_transfer(data: TransferCreate):
    """Check source and destination readiness without transferring anything."""
    config = _config(data)

    try:
        orchestrator = create_orchestrator(config)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    try:
        report = orchestrator.check(config.resources)
    except ConnectivityError as e:
        report = {kind: [e.message] for kind in config.resources}
    finally:
        orchestrator.close()

    problems = {kind.value: messages for kind, messages in report.items()}
    return CheckResponse(
        ready=not any(problems.values()),
        problems=problems,
    )


@router.post("", response_model=TransferResponse, status_code=202)
def start_transfer(data: TransferCreate, background_tasks: BackgroundTasks):
    """Create a transfer run and start it in the background."""
    config = _config(data)

    # Fail fast on unknown adapters before a run is recorded.
    try:
        create_orchestrator(config).close()
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    run = transfer_storage.create(config)
    background_tasks.add_task(run_transfer_task, run.id)

    return _response(run)


@router.get("", response_model=TransferListResponse)
def list_transfers():
    """List all transfer runs."""
    runs = transfer_storage.list_all()
    return TransferListResponse(
        transfers=[_response(run) for run in runs],
        total=len(runs),
    )


@router.get("/{transfer_id}", response_model=TransferResponse)
def get_transfer(transfer_id: str):
    """Get a specific transfer run."""
    run = transfer_storage.get(transfer_id)
    if not run:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return _response(run)


def run_transfer_task(transfer_id: str):
    """Background task executing a stored transfer run."""
    run = transfer_storage.get(transfer_id)
    config = transfer_storage.get_config(transfer_id)
    if run is None or config is None:
        logger.error(f"Transfer {transfer_id} disappeared before it started")
        return

    orchestrator = None
    try:
        orchestrator = create_orchestrator(config)
        orchestrator.transfer(config.resources, check=config.check_before_run, run=run)
    except Exception as e:
        # transfer() has already recorded the failure on the run.
        if run.status != TransferStatus.FAILED:
            run.status = TransferStatus.FAILED
            run.error = str(e)
        logger.error(f"Transfer {transfer_id} failed: {e}")
    finally:
        if orchestrator is not None:
            orchestrator.close()
