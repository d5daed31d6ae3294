from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from app.core.settings import Settings
from app.schemas.imports import ImportTemplate, PreviewResult
from app.services.imports.mapper import EMPTY_MAPPING, auto_map_columns
from app.services.imports.parser import detect_file_type, parse_upload
from app.services.imports.rules import ImportType, validate_rows
from app.services.templates import TemplateStore


logger = logging.getLogger(__name__)

SAMPLE_SIZE = 5


@dataclass(frozen=True)
class ImportPipelineConfig:
    template_store: TemplateStore
    rows_per_second: int = 100
    max_upload_bytes: int = 50 * 1024 * 1024


def build_import_config(settings: Settings, template_store: TemplateStore) -> ImportPipelineConfig:
    return ImportPipelineConfig(
        template_store=template_store,
        rows_per_second=settings.import_rows_per_second,
        max_upload_bytes=settings.import_max_upload_bytes,
    )


def estimate_processing_seconds(total_rows: int, rows_per_second: int = 100) -> int:
    if total_rows <= 0:
        return 0
    return math.ceil(total_rows / max(1, rows_per_second))


def build_preview(
    *,
    content: bytes,
    filename: str | None,
    content_type: str | None,
    import_type: ImportType,
    template_id: str | None,
    config: ImportPipelineConfig,
) -> PreviewResult:
    file_type = detect_file_type(filename, content_type)
    table = parse_upload(content, file_type)
    total_rows = len(table.rows)
    logger.info(
        "import.preview.parsed file_type=%s rows=%s headers=%s import_type=%s",
        file_type,
        total_rows,
        len(table.headers),
        import_type.value,
    )

    template: ImportTemplate | None = None
    if template_id:
        template = config.template_store.get_template(template_id)

    mapping = EMPTY_MAPPING
    if template is not None and table.rows:
        mapping = auto_map_columns(table.rows[0].keys(), template.logical_fields)
        logger.info("import.preview.mapped template_id=%s mapped=%s", template.id, len(mapping))

    sample = table.rows[:SAMPLE_SIZE]
    issues = validate_rows(sample, import_type, mapping)

    return PreviewResult(
        total_rows=total_rows,
        sample_rows=[dict(r) for r in sample],
        column_mapping=mapping.as_dict(),
        validation_errors=issues,
        estimated_time=estimate_processing_seconds(total_rows, config.rows_per_second),
        file_type=file_type,
        headers=list(table.headers),
        file_size=len(content),
        template_name=(template.name if template is not None else None),
    )
