"""
Business-only entities: clients, projects and cost centers.

These exist only under business accounts.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from ledgerdash.models.common import LedgerModel, Money, NonNegativeMoney


class Client(LedgerModel):
    id: int
    account_id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class ClientCreate(LedgerModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: Optional[str] = Field(
        default=None,
        max_length=200,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
    )
    phone: Optional[str] = Field(default=None, max_length=40)
    notes: Optional[str] = Field(default=None, max_length=1000)


class ClientUpdate(LedgerModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    email: Optional[str] = Field(
        default=None,
        max_length=200,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
    )
    phone: Optional[str] = Field(default=None, max_length=40)
    notes: Optional[str] = Field(default=None, max_length=1000)


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Project(LedgerModel):
    id: int
    account_id: int
    name: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    client_id: Optional[int] = None
    budget: Optional[Money] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class ProjectCreate(LedgerModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: ProjectStatus = ProjectStatus.ACTIVE
    client_id: Optional[int] = None
    budget: Optional[NonNegativeMoney] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    @model_validator(mode='after')
    def validate_dates(self) -> 'ProjectCreate':
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("Project end date cannot be before start date")
        return self


class ProjectUpdate(LedgerModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[ProjectStatus] = None
    client_id: Optional[int] = None
    budget: Optional[NonNegativeMoney] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class CostCenter(LedgerModel):
    id: int
    account_id: int
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    department: Optional[str] = None
    manager: Optional[str] = None
    budget: Optional[Money] = None


class CostCenterCreate(LedgerModel):
    name: str = Field(..., min_length=1, max_length=120)
    code: Optional[str] = Field(default=None, max_length=30)
    description: Optional[str] = Field(default=None, max_length=1000)
    department: Optional[str] = Field(default=None, max_length=120)
    manager: Optional[str] = Field(default=None, max_length=120)
    budget: Optional[NonNegativeMoney] = None


class CostCenterUpdate(LedgerModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    code: Optional[str] = Field(default=None, max_length=30)
    description: Optional[str] = Field(default=None, max_length=1000)
    department: Optional[str] = Field(default=None, max_length=120)
    manager: Optional[str] = Field(default=None, max_length=120)
    budget: Optional[NonNegativeMoney] = None
