"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime


class TransferStatusEnum(str, Enum):
    PENDING = "pending"
    CHECKING = "checking"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# Request Models
class AdapterCreate(BaseModel):
    type: str
    options: Dict[str, Any] = Field(default_factory=dict)


class TransferCreate(BaseModel):
    name: str = ""
    source: AdapterCreate
    destination: AdapterCreate
    resources: List[str] = Field(default_factory=list)
    batch_size: int = Field(default=100, ge=1)
    file_batch_size: int = Field(default=5, ge=1)
    check_before_run: bool = True


# Response Models
class CheckResponse(BaseModel):
    ready: bool
    problems: Dict[str, List[str]]


class ProgressResponse(BaseModel):
    resource: str
    timestamp: datetime
    total: int = 0
    current: int = 0
    failed: int = 0
    skipped: int = 0


class LogResponse(BaseModel):
    level: str
    message: str
    timestamp: datetime
    resource: Optional[Dict[str, str]] = None


class TransferResponse(BaseModel):
    id: str
    name: str
    status: TransferStatusEnum
    resources: List[str]
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    progress: Dict[str, ProgressResponse] = Field(default_factory=dict)
    logs: List[LogResponse] = Field(default_factory=list)
    error: Optional[str] = None


class TransferListResponse(BaseModel):
    transfers: List[TransferResponse]
    total: int
