from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterable, Mapping

from app.schemas.imports import ValidationIssue
from app.services.imports.mapper import EMPTY_MAPPING, ColumnMapping

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Leading-prefix float parse: "12abc" is a number, "abc" is not.
FLOAT_PREFIX_RE = re.compile(r"^\s*[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class ImportType(str, enum.Enum):
    PORTFOLIOS = "portfolios"
    CLIENTS = "clients"
    AGENCIES = "agencies"
    ACCOUNTS = "accounts"

    @classmethod
    def parse(cls, value: str | None) -> "ImportType | None":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class EnumField:
    name: str
    label: str
    allowed: tuple[str, ...]


@dataclass(frozen=True)
class ImportTypeSchema:
    import_type: ImportType
    required_fields: tuple[str, ...] = ()
    numeric_fields: tuple[str, ...] = ()
    email_fields: tuple[str, ...] = ()
    enum_fields: tuple[EnumField, ...] = ()
    optional_fields: tuple[str, ...] = ()


SCHEMAS: dict[ImportType, ImportTypeSchema] = {
    ImportType.PORTFOLIOS: ImportTypeSchema(
        import_type=ImportType.PORTFOLIOS,
        required_fields=("name", "client_code", "original_balance", "account_count"),
        numeric_fields=("original_balance", "account_count", "debt_age_months", "average_balance"),
        enum_fields=(
            EnumField(
                "portfolio_type",
                "portfolio type",
                ("credit_card", "medical", "personal_loan", "auto_loan", "mortgage", "utility", "other"),
            ),
        ),
        optional_fields=("portfolio_type", "debt_age_months", "average_balance", "description"),
    ),
    ImportType.CLIENTS: ImportTypeSchema(
        import_type=ImportType.CLIENTS,
        required_fields=("name", "code"),
        email_fields=("contact_email",),
        enum_fields=(EnumField("client_type", "client type", ("creditor", "debt_buyer", "servicer")),),
        optional_fields=("contact_email", "client_type", "contact_name", "contact_phone"),
    ),
    ImportType.AGENCIES: ImportTypeSchema(
        import_type=ImportType.AGENCIES,
        required_fields=("name", "code", "instance_id", "contact_email"),
        email_fields=("contact_email",),
        enum_fields=(
            EnumField("subscription_tier", "subscription tier", ("basic", "professional", "enterprise")),
        ),
        optional_fields=("subscription_tier", "contact_name", "contact_phone"),
    ),
    ImportType.ACCOUNTS: ImportTypeSchema(
        import_type=ImportType.ACCOUNTS,
        required_fields=("original_account_number", "ssn", "current_balance", "charge_off_date"),
        optional_fields=("original_balance", "first_name", "last_name", "email_primary", "phone_primary"),
    ),
}


def is_number_like(value: str) -> bool:
    return FLOAT_PREFIX_RE.match(value) is not None


def is_valid_email(value: str) -> bool:
    return EMAIL_RE.match(value) is not None


class RowRules:
    def __init__(self, schema: ImportTypeSchema) -> None:
        self.schema = schema

    def validate_row(self, row: Mapping[str, str], row_number: int, mapping: ColumnMapping) -> list[ValidationIssue]:
        raise NotImplementedError

    def check_required(self, row, row_number, mapping) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for name in self.schema.required_fields:
            column = mapping.resolve(name)
            value = row.get(column)
            if not value or not str(value).strip():
                issues.append(_issue(row_number, column, value or "", f"{name} is required"))
        return issues

    def check_numeric(self, row, row_number, mapping) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for name in self.schema.numeric_fields:
            column = mapping.resolve(name)
            value = row.get(column)
            if value and not is_number_like(value):
                issues.append(_issue(row_number, column, value, f"{name} must be a number"))
        return issues

    def check_email(self, row, row_number, mapping) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for name in self.schema.email_fields:
            column = mapping.resolve(name)
            value = row.get(column)
            if value and not is_valid_email(value):
                issues.append(_issue(row_number, column, value, "Invalid email format"))
        return issues

    def check_enums(self, row, row_number, mapping) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for enum_field in self.schema.enum_fields:
            column = mapping.resolve(enum_field.name)
            value = row.get(column)
            if value and value.lower() not in enum_field.allowed:
                message = f"Invalid {enum_field.label}. Must be one of: {', '.join(enum_field.allowed)}"
                issues.append(_issue(row_number, column, value, message))
        return issues


class PortfolioRowRules(RowRules):
    def validate_row(self, row, row_number, mapping):
        return [
            *self.check_required(row, row_number, mapping),
            *self.check_numeric(row, row_number, mapping),
            *self.check_enums(row, row_number, mapping),
        ]


class ClientRowRules(RowRules):
    def validate_row(self, row, row_number, mapping):
        return [
            *self.check_required(row, row_number, mapping),
            *self.check_email(row, row_number, mapping),
            *self.check_enums(row, row_number, mapping),
        ]


class AgencyRowRules(ClientRowRules):
    pass


class AccountRowRules(RowRules):
    # Account rows are not validated at preview time yet.
    def validate_row(self, row, row_number, mapping):
        return []


RULES: dict[ImportType, RowRules] = {
    ImportType.PORTFOLIOS: PortfolioRowRules(SCHEMAS[ImportType.PORTFOLIOS]),
    ImportType.CLIENTS: ClientRowRules(SCHEMAS[ImportType.CLIENTS]),
    ImportType.AGENCIES: AgencyRowRules(SCHEMAS[ImportType.AGENCIES]),
    ImportType.ACCOUNTS: AccountRowRules(SCHEMAS[ImportType.ACCOUNTS]),
}

_missing = set(ImportType) - set(RULES) | set(ImportType) - set(SCHEMAS)
if _missing:
    raise RuntimeError(f"Import types without rules or schema: {sorted(t.value for t in _missing)}")


def validate_rows(
    rows: Iterable[Mapping[str, str]],
    import_type: ImportType,
    mapping: ColumnMapping = EMPTY_MAPPING,
) -> list[ValidationIssue]:
    rules = RULES[import_type]
    issues: list[ValidationIssue] = []
    for idx, row in enumerate(rows, start=1):
        issues.extend(rules.validate_row(row, idx, mapping))
    return issues


def _issue(row_number: int, column: str, value: str, message: str) -> ValidationIssue:
    return ValidationIssue(row=row_number, column=column, value=str(value), message=message, severity="error")
