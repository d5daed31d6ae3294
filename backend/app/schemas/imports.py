from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    row: int = Field(ge=1)
    column: str
    value: str
    message: str
    severity: Literal["error", "warning"] = "error"


class ImportTemplate(BaseModel):
    id: str
    name: str
    import_type: Optional[str] = None
    description: Optional[str] = None
    required_columns: List[str] = []
    optional_columns: List[str] = []
    field_mappings: Dict[str, str] = {}

    @property
    def logical_fields(self) -> List[str]:
        seen: list[str] = []
        for field in [*self.required_columns, *self.optional_columns]:
            if field and field not in seen:
                seen.append(field)
        return seen


class PreviewResult(BaseModel):
    total_rows: int
    sample_rows: List[Dict[str, str]]
    column_mapping: Dict[str, str]
    validation_errors: List[ValidationIssue]
    estimated_time: int
    file_type: Literal["csv", "excel"]
    headers: List[str]
    file_size: int = 0
    template_name: Optional[str] = None


class PreviewResponse(BaseModel):
    preview: PreviewResult


class TemplateListResponse(BaseModel):
    templates: List[ImportTemplate]


class TemplateResponse(BaseModel):
    template: ImportTemplate


class ImportTypeSchemaOut(BaseModel):
    import_type: str
    required_fields: List[str]
    optional_fields: List[str]
    numeric_fields: List[str]
    email_fields: List[str]
    enum_fields: Dict[str, List[str]]
    validated: bool
