from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TableDefaultsModel(BaseModel):
    sort_key: Optional[str] = None
    sort_dir: Optional[str] = None
    page_size: int = 10


class DashboardSettingsModel(BaseModel):
    table: TableDefaultsModel = Field(default_factory=TableDefaultsModel)
    summary: TableDefaultsModel = Field(default_factory=TableDefaultsModel)


class LoadRequest(BaseModel):
    csv_text: str


class LoadResponse(BaseModel):
    records: int
    summary_rows: int
    parse_errors: List[str] = Field(default_factory=list)


class MetaColumnsResponse(BaseModel):
    table: Dict[str, str]
    summary: Dict[str, str]
