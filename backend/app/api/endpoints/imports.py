from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.core.permissions import require_permission
from app.core.security import CurrentUser
from app.schemas.imports import (
    ImportTypeSchemaOut,
    PreviewResponse,
    TemplateListResponse,
    TemplateResponse,
)
from app.services.imports.parser import is_legacy_workbook, is_supported_upload
from app.services.imports.preview import ImportPipelineConfig, build_preview
from app.services.imports.rules import SCHEMAS, AccountRowRules, ImportType, RULES
from app.services.templates import TemplateLookupError


logger = logging.getLogger(__name__)

router = APIRouter()


def get_import_config(request: Request) -> ImportPipelineConfig:
    config = getattr(request.app.state, "import_config", None)
    if config is None:
        raise HTTPException(status_code=500, detail="Import pipeline is not configured")
    return config


@router.post("/import/preview", response_model=PreviewResponse)
async def import_preview(
    file: UploadFile | None = File(None),
    import_type: str | None = Form(None),
    template_id: str | None = Form(None),
    user: CurrentUser = Depends(require_permission("import.preview")),
    config: ImportPipelineConfig = Depends(get_import_config),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    if not (import_type or "").strip():
        raise HTTPException(status_code=400, detail="Import type is required")
    parsed_type = ImportType.parse(import_type)
    if parsed_type is None:
        raise HTTPException(status_code=400, detail=f"Unsupported import type: {import_type}")
    if is_legacy_workbook(file.filename, file.content_type):
        raise HTTPException(
            status_code=400,
            detail="Legacy .xls workbooks are not supported. Please save the file as .xlsx or CSV.",
        )
    if not is_supported_upload(file.filename, file.content_type):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a CSV or Excel file.")

    template_id = (template_id or "").strip() or None

    try:
        content = await file.read()
        if not content:
            raise HTTPException(status_code=400, detail="The uploaded file is empty")
        if len(content) > config.max_upload_bytes:
            raise HTTPException(status_code=400, detail="The uploaded file is too large")

        preview = await run_in_threadpool(
            build_preview,
            content=content,
            filename=file.filename,
            content_type=file.content_type,
            import_type=parsed_type,
            template_id=template_id,
            config=config,
        )
    except TemplateLookupError as exc:
        logger.error("import.preview.template_failed user=%s template_id=%s error=%s", user.id, template_id, exc)
        raise HTTPException(status_code=500, detail=f"Failed to load import template: {exc}")
    except Exception as e:
        if isinstance(e, HTTPException):
            raise
        logger.exception("import.preview.error user=%s filename=%s", user.id, file.filename)
        raise HTTPException(status_code=500, detail=f"Error processing file: {str(e)}")

    logger.info(
        "import.preview.done user=%s rows=%s issues=%s",
        user.id,
        preview.total_rows,
        len(preview.validation_errors),
    )
    return PreviewResponse(preview=preview)


@router.get("/import/templates", response_model=TemplateListResponse)
async def list_import_templates(
    import_type: str | None = None,
    _user: CurrentUser = Depends(require_permission("import.templates.read")),
    config: ImportPipelineConfig = Depends(get_import_config),
):
    if import_type and ImportType.parse(import_type) is None:
        raise HTTPException(status_code=400, detail=f"Unsupported import type: {import_type}")
    try:
        templates = await run_in_threadpool(config.template_store.list_templates, import_type or None)
    except TemplateLookupError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to fetch templates: {exc}")
    return TemplateListResponse(templates=templates)


@router.get("/import/templates/{template_id}", response_model=TemplateResponse)
async def get_import_template(
    template_id: str,
    _user: CurrentUser = Depends(require_permission("import.templates.read")),
    config: ImportPipelineConfig = Depends(get_import_config),
):
    try:
        template = await run_in_threadpool(config.template_store.get_template, template_id)
    except TemplateLookupError as exc:
        if exc.not_found:
            raise HTTPException(status_code=404, detail="Template not found")
        raise HTTPException(status_code=500, detail=f"Failed to load import template: {exc}")
    return TemplateResponse(template=template)


@router.get("/import/types", response_model=list[ImportTypeSchemaOut])
async def list_import_types(_user: CurrentUser = Depends(require_permission("import.types.read"))):
    out: list[ImportTypeSchemaOut] = []
    for import_type in ImportType:
        schema = SCHEMAS[import_type]
        out.append(
            ImportTypeSchemaOut(
                import_type=import_type.value,
                required_fields=list(schema.required_fields),
                optional_fields=list(schema.optional_fields),
                numeric_fields=list(schema.numeric_fields),
                email_fields=list(schema.email_fields),
                enum_fields={f.name: list(f.allowed) for f in schema.enum_fields},
                validated=not isinstance(RULES[import_type], AccountRowRules),
            )
        )
    return out
