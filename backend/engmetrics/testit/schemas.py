from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SuiteDocument(BaseModel):
    suite_id: str = Field(min_length=1)
    name: str = ""
    total: int = Field(0, ge=0)
    passing: int = Field(0, ge=0)
    failing: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    automated: int = Field(0, ge=0)
    automatable: int = Field(0, ge=0)
    child_suites: list[SuiteDocument] | None = None


class ProjectUpsert(BaseModel):
    project_id: str = Field(min_length=1, max_length=255)
    name: str = Field("", max_length=255)
    prefix: str = Field("", max_length=64)
    test_suites: list[SuiteDocument] = []


class ProjectResponse(BaseModel):
    project_id: str
    name: str
    prefix: str
    test_suites: list[SuiteDocument]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SuiteListing(BaseModel):
    suite_id: str
    name: str
    depth: int
    path: str
    total: int


class StatsRequest(BaseModel):
    paths: list[str]


class PathError(BaseModel):
    path: str
    error: str


class StatsResponse(BaseModel):
    total: int
    passing: int
    failing: int
    skipped: int
    automated: int
    automatable: int
    errors: list[PathError]
