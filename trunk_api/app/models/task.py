"""
Task Models
Request bodies for the task CRUD routes and the capability routes built on them
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class TaskCreate(BaseModel):
    """Body of POST /api/tasks"""
    title: Optional[str] = Field(default=None, description="Required; validated by the route")
    description: str = ""
    priority: str = "medium"
    tags: List[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Body of PUT /api/tasks/{id}; unknown keys are merged into the record"""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    tags: Optional[List[str]] = None


class SearchRequest(BaseModel):
    """Body of POST /api/search"""
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    date_from: Optional[str] = Field(default=None, alias="dateFrom")
    date_to: Optional[str] = Field(default=None, alias="dateTo")


class ExportRequest(BaseModel):
    """Body of POST /api/export/csv"""
    status: Optional[str] = None
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    columns: Optional[List[str]] = None
