from __future__ import annotations

import logging
from typing import Any, Protocol

from app.schemas.imports import ImportTemplate
from app.services.supabase_rest import SupabaseError, SupabaseRestClient


logger = logging.getLogger(__name__)

TEMPLATE_COLUMNS = "id,name,description,import_type,required_columns,optional_columns,field_mappings"


class TemplateLookupError(Exception):
    def __init__(self, template_id: str, message: str, *, not_found: bool = False) -> None:
        self.template_id = template_id
        self.not_found = not_found
        super().__init__(message)


class TemplateStore(Protocol):
    def get_template(self, template_id: str) -> ImportTemplate: ...

    def list_templates(self, import_type: str | None = None) -> list[ImportTemplate]: ...


def _str_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(v).strip() for v in raw if v is not None and str(v).strip()]


def template_from_row(row: dict[str, Any]) -> ImportTemplate:
    mappings = row.get("field_mappings")
    if not isinstance(mappings, dict):
        mappings = {}
    return ImportTemplate(
        id=str(row.get("id") or ""),
        name=str(row.get("name") or ""),
        import_type=(str(row.get("import_type")) if row.get("import_type") else None),
        description=(str(row.get("description")) if row.get("description") else None),
        required_columns=_str_list(row.get("required_columns")),
        optional_columns=_str_list(row.get("optional_columns")),
        field_mappings={str(k): str(v) for k, v in mappings.items() if v is not None},
    )


class SupabaseTemplateStore:
    table = "import_templates"

    def __init__(self, client: SupabaseRestClient) -> None:
        self._client = client

    def get_template(self, template_id: str) -> ImportTemplate:
        template_id = (template_id or "").strip()
        if not template_id:
            raise TemplateLookupError(template_id, "Template id is empty", not_found=True)
        try:
            row = self._client.select_one(
                self.table,
                columns=TEMPLATE_COLUMNS,
                filters={"id": f"eq.{template_id}"},
            )
        except SupabaseError as exc:
            logger.warning("templates.get.failed template_id=%s status=%s", template_id, exc.status)
            raise TemplateLookupError(template_id, exc.message) from exc
        if row is None:
            raise TemplateLookupError(template_id, f"Template {template_id} not found", not_found=True)
        return template_from_row(row)

    def list_templates(self, import_type: str | None = None) -> list[ImportTemplate]:
        filters = {"import_type": f"eq.{import_type}"} if import_type else None
        try:
            rows = self._client.select(
                self.table,
                columns=TEMPLATE_COLUMNS,
                filters=filters,
                order="created_at.desc",
            )
        except SupabaseError as exc:
            logger.warning("templates.list.failed import_type=%s status=%s", import_type, exc.status)
            raise TemplateLookupError("", exc.message) from exc
        return [template_from_row(r) for r in rows]
