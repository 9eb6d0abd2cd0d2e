"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the shared backend because:
1. Anyone in the group can open the sheet and see the raw data
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a group has tens of rows)
- No transactions; concurrent edits are last-write-wins
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing the ledger or the orchestrator.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from loonie.config import get_settings
from loonie.models.audit import AuditEvent, AuditEventType, AuditSeverity
from loonie.models.group import ColorScheme, Expense, ExpenseCategory, Group, Member
from loonie.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


# Column mappings, one list per worksheet
GROUP_COLUMNS = [
    "id",
    "name",
    "emoji",
    "color_scheme",
    "currency_default",
    "created_at",
]

MEMBER_COLUMNS = [
    "id",
    "group_id",
    "name",
    "created_at",
]

EXPENSE_COLUMNS = [
    "id",
    "group_id",
    "amount",
    "currency",
    "description",
    "category",
    "paid_by",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "group_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


# Only transient API failures are worth retrying
api_retry = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


@api_retry
def read_rows(sheet: gspread.Worksheet) -> list[list[str]]:
    """All data rows (header excluded)."""
    return sheet.get_all_values()[1:]


@api_retry
def append_row(sheet: gspread.Worksheet, row: list) -> None:
    sheet.append_row(row, value_input_option="RAW")


@api_retry
def replace_row(sheet: gspread.Worksheet, row_number: int, row: list) -> None:
    sheet.update(range_name=f"A{row_number}", values=[row], value_input_option="RAW")


@api_retry
def delete_row(sheet: gspread.Worksheet, row_number: int) -> None:
    sheet.delete_rows(row_number)


def find_row_number(rows: list[list[str]], entity_id: UUID) -> Optional[int]:
    """
    1-based sheet row number of the row whose first cell is `entity_id`.

    `rows` must come from read_rows (header already removed).
    """
    for idx, row in enumerate(rows, start=2):  # Start from 2 (row 1 is header)
        if row and row[0] == str(entity_id):
            return idx
    return None


def safe_get(row: list, index: int, default: str = "") -> str:
    """Handle missing columns gracefully."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and creates missing worksheets with headers.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_groups_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.groups_sheet_name, GROUP_COLUMNS)

    def get_members_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.members_sheet_name, MEMBER_COLUMNS)

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


# =============================================================================
# ROW CONVERSION
# =============================================================================

def group_to_row(group: Group) -> list:
    return [
        str(group.id),
        group.name,
        group.emoji,
        group.color_scheme.value,
        group.currency_default,
        group.created_at.isoformat(),
    ]


def row_to_group(row: list) -> Group:
    return Group(
        id=UUID(safe_get(row, 0)),
        name=safe_get(row, 1),
        emoji=safe_get(row, 2, "🍔"),
        color_scheme=ColorScheme(safe_get(row, 3, ColorScheme.INDIGO_PURPLE.value)),
        currency_default=safe_get(row, 4, "USD"),
        created_at=datetime.fromisoformat(safe_get(row, 5)),
    )


def member_to_row(member: Member) -> list:
    return [
        str(member.id),
        str(member.group_id),
        member.name,
        member.created_at.isoformat(),
    ]


def row_to_member(row: list) -> Member:
    return Member(
        id=UUID(safe_get(row, 0)),
        group_id=UUID(safe_get(row, 1)),
        name=safe_get(row, 2),
        created_at=datetime.fromisoformat(safe_get(row, 3)),
    )


def expense_to_row(expense: Expense) -> list:
    return [
        str(expense.id),
        str(expense.group_id),
        str(expense.amount),
        expense.currency,
        expense.description,
        expense.category.value,
        expense.paid_by,
        expense.created_at.isoformat(),
    ]


def row_to_expense(row: list) -> Expense:
    return Expense(
        id=UUID(safe_get(row, 0)),
        group_id=UUID(safe_get(row, 1)),
        amount=Decimal(safe_get(row, 2)),
        currency=safe_get(row, 3, "USD"),
        description=safe_get(row, 4),
        category=ExpenseCategory(safe_get(row, 5, ExpenseCategory.OTHER.value)),
        paid_by=safe_get(row, 6),
        created_at=datetime.fromisoformat(safe_get(row, 7)),
    )


def parse_rows(
    rows: list[list[str]],
    parser: Callable[[list], T],
    kind: str,
) -> list[T]:
    """Parse rows, skipping (and logging) any that are malformed."""
    parsed = []
    for row in rows:
        if not row or not row[0]:  # Skip empty rows
            continue
        try:
            parsed.append(parser(row))
        except (ValueError, ArithmeticError) as e:
            logger.warning("malformed_row_skipped", kind=kind, row_id=row[0], error=str(e))
    return parsed


class GoogleSheetsGroupStorage(GroupStorageInterface):
    """
    Google Sheets implementation of group storage.

    One worksheet each for groups, members and expenses, one entity per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def _require_group(self, group_id: UUID) -> None:
        if await self.get_group(group_id) is None:
            raise NotFoundError(f"Group not found: {group_id}")

    async def create_group(self, group: Group) -> Group:
        try:
            sheet = self._client.get_groups_sheet()
            if find_row_number(read_rows(sheet), group.id) is not None:
                raise DuplicateError(f"Group already exists: {group.id}")
            append_row(sheet, group_to_row(group))
            return group
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create group: {e}")

    async def get_group(self, group_id: UUID) -> Optional[Group]:
        try:
            sheet = self._client.get_groups_sheet()
            for row in read_rows(sheet):
                if row and row[0] == str(group_id):
                    return row_to_group(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get group: {e}")

    async def list_members(self, group_id: UUID) -> list[Member]:
        try:
            sheet = self._client.get_members_sheet()
            rows = [
                row for row in read_rows(sheet)
                if len(row) > 1 and row[1] == str(group_id)
            ]
        except Exception as e:
            raise StorageError(f"Failed to list members: {e}")

        members = parse_rows(rows, row_to_member, "member")
        return sorted(members, key=lambda m: m.created_at)

    async def add_member(self, member: Member) -> Member:
        await self._require_group(member.group_id)
        try:
            sheet = self._client.get_members_sheet()
            if find_row_number(read_rows(sheet), member.id) is not None:
                raise DuplicateError(f"Member already exists: {member.id}")
            append_row(sheet, member_to_row(member))
            return member
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to add member: {e}")

    async def update_member(self, member: Member) -> Member:
        try:
            sheet = self._client.get_members_sheet()
            row_number = find_row_number(read_rows(sheet), member.id)
            if row_number is None:
                raise NotFoundError(f"Member not found: {member.id}")
            replace_row(sheet, row_number, member_to_row(member))
            return member
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update member: {e}")

    async def remove_member(self, member_id: UUID) -> bool:
        try:
            sheet = self._client.get_members_sheet()
            row_number = find_row_number(read_rows(sheet), member_id)
            if row_number is None:
                return False
            delete_row(sheet, row_number)
            return True
        except Exception as e:
            raise StorageError(f"Failed to remove member: {e}")

    async def list_expenses(self, group_id: UUID) -> list[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            rows = [
                row for row in read_rows(sheet)
                if len(row) > 1 and row[1] == str(group_id)
            ]
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

        expenses = parse_rows(rows, row_to_expense, "expense")
        return sorted(expenses, key=lambda e: e.created_at, reverse=True)

    async def add_expense(self, expense: Expense) -> Expense:
        await self._require_group(expense.group_id)
        try:
            sheet = self._client.get_expenses_sheet()
            if find_row_number(read_rows(sheet), expense.id) is not None:
                raise DuplicateError(f"Expense already exists: {expense.id}")
            append_row(sheet, expense_to_row(expense))
            return expense
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to add expense: {e}")

    async def delete_expense(self, expense_id: UUID) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            row_number = find_row_number(read_rows(sheet), expense_id)
            if row_number is None:
                return False
            delete_row(sheet, row_number)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        group_id = safe_get(row, 4)
        entity_id = safe_get(row, 6)
        correlation_id = safe_get(row, 7)
        details = safe_get(row, 9)
        return AuditEvent(
            event_id=UUID(safe_get(row, 0)),
            timestamp=datetime.fromisoformat(safe_get(row, 1)),
            event_type=AuditEventType(safe_get(row, 2)),
            severity=AuditSeverity(safe_get(row, 3)),
            group_id=UUID(group_id) if group_id else None,
            entity_type=safe_get(row, 5) or None,
            entity_id=UUID(entity_id) if entity_id else None,
            correlation_id=UUID(correlation_id) if correlation_id else None,
            description=safe_get(row, 8),
            details=json.loads(details) if details else {},
            error_message=safe_get(row, 10) or None,
            is_user_action=safe_get(row, 11).lower() == "true",
        )

    def _read_events(self) -> list[AuditEvent]:
        try:
            rows = read_rows(self._client.get_audit_sheet())
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        return parse_rows(rows, self._row_to_event, "audit_event")

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            append_row(self._client.get_audit_sheet(), event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_event_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._read_events(), key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
