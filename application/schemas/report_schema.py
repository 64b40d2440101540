# application/schemas/report_schema.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DateRangeValues(BaseModel):
    model_config = ConfigDict(extra='allow')

    values: List[str] = Field(default_factory=list)

    @field_validator('values', mode='before')
    def stringify_values(cls, v):
        if v is None:
            return []
        return [str(item) for item in v]


class ReportRow(BaseModel):
    model_config = ConfigDict(extra='allow')

    dimensions: List[str] = Field(default_factory=list)
    metrics: List[DateRangeValues] = Field(default_factory=list)

    @field_validator('dimensions', mode='before')
    def none_to_empty(cls, v):
        return [] if v is None else v

    def metric_values(self) -> List[str]:
        """Values of the first date range, in the order metrics were requested."""
        if not self.metrics:
            return []
        return self.metrics[0].values


class ReportData(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    rows: List[ReportRow] = Field(default_factory=list)
    # GA leaves rowCount out for some metric/date combinations
    row_count: Optional[int] = Field(default=None, alias='rowCount')

    @field_validator('rows', mode='before')
    def none_rows_to_empty(cls, v):
        return [] if v is None else v


class Report(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    column_header: Dict[str, Any] = Field(default_factory=dict, alias='columnHeader')
    data: ReportData = Field(default_factory=ReportData)
    next_page_token: Optional[str] = Field(default=None, alias='nextPageToken')


class ReportResponse(BaseModel):
    """Validated shape of a Reporting API v4 batchGet response."""
    model_config = ConfigDict(extra='allow')

    reports: List[Report] = Field(default_factory=list)

    @property
    def row_count(self) -> Optional[int]:
        if not self.reports:
            return None
        return self.reports[0].data.row_count

    @property
    def next_page_token(self) -> Optional[str]:
        for report in self.reports:
            if report.next_page_token:
                return report.next_page_token
        return None
