from app.schemas.imports import ImportTemplate
from app.services.imports.preview import ImportPipelineConfig, build_preview
from app.services.imports.rules import ImportType


class _StaticTemplateStore:
    def __init__(self, template: ImportTemplate) -> None:
        self._template = template

    def get_template(self, template_id: str) -> ImportTemplate:
        return self._template

    def list_templates(self, import_type: str | None = None) -> list[ImportTemplate]:
        return [self._template]


def main() -> None:
    template = ImportTemplate(
        id="smoke",
        name="Smoke portfolios",
        import_type="portfolios",
        required_columns=["name", "client_code", "original_balance", "account_count"],
        optional_columns=["portfolio_type"],
    )
    config = ImportPipelineConfig(template_store=_StaticTemplateStore(template))
    content = (
        "Portfolio Name,Client_Code,Original_Balance,Account_Count,Portfolio_Type\n"
        '"Spring, 2024",AC1,150000,42,Credit_Card\n'
        "Summer,AC1,abc,10,bogus_type\n"
    ).encode("utf-8")

    preview = build_preview(
        content=content,
        filename="portfolios.csv",
        content_type="text/csv",
        import_type=ImportType.PORTFOLIOS,
        template_id="smoke",
        config=config,
    )
    assert preview.total_rows == 2, preview.total_rows
    assert preview.sample_rows[0]["Portfolio Name"] == "Spring, 2024", preview.sample_rows[0]
    assert preview.column_mapping["original_balance"] == "Original_Balance", preview.column_mapping
    messages = [i.message for i in preview.validation_errors]
    assert messages[0] == "original_balance must be a number", messages
    assert messages[1].startswith("Invalid portfolio type"), messages
    assert preview.estimated_time == 1, preview.estimated_time


if __name__ == "__main__":
    main()
    print("OK")
