"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the initial storage backend because:
1. Users can look at their budgets directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (one row per user keeps writes simple)
- Limited query capabilities (we filter in Python)

Each budget row carries a few readable summary columns for people looking
at the sheet, plus JSON columns that hold the full documents. Only the
JSON columns are read back.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import get_settings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.budget import (
    BudgetAllocation,
    BudgetHealth,
    BudgetProfile,
    BudgetRecord,
)
from src.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConnectionError,
    DuplicateError,
    StorageError,
)


# Column mappings for Budgets sheet
BUDGET_COLUMNS = [
    "user_id",
    "budget_id",
    "updated_at",
    "generated_at",
    "customized_at",
    "is_customized",
    "monthly_income",
    "city",
    "family_size",
    "age",
    "total_budget",
    "total_allocated",
    "savings_amount",
    "savings_percentage",
    "health_score",
    "health_grade",
    "profile_json",
    "allocation_json",
    "health_json",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.
    
    Handles authentication and provides retry logic for API calls.
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
    
    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet
    
    def get_budgets_sheet(self) -> gspread.Worksheet:
        """Get or create the Budgets worksheet."""
        return self._get_or_create_sheet(
            self._settings.budgets_sheet_name, BUDGET_COLUMNS, rows=1000
        )
    
    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """
    Google Sheets implementation of budget storage.
    
    One row per user, keyed by user_id in the first column.
    """
    
    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
    
    def _record_to_row(self, record: BudgetRecord) -> list:
        """Convert a BudgetRecord to a spreadsheet row."""
        allocation = record.allocation
        return [
            record.user_id,
            str(allocation.budget_id),
            record.updated_at.isoformat(),
            allocation.generated_at.isoformat(),
            allocation.customized_at.isoformat() if allocation.customized_at else "",
            str(allocation.is_customized),
            str(record.profile.monthly_income),
            record.profile.city,
            str(record.profile.family_size),
            str(record.profile.age),
            str(allocation.total_budget),
            str(allocation.total_allocated),
            str(allocation.savings_amount),
            f"{allocation.savings_percentage:.4f}",
            str(record.health.score),
            record.health.grade,
            record.profile.model_dump_json(),
            allocation.model_dump_json(),
            record.health.model_dump_json(),
        ]
    
    def _row_to_record(self, row: list) -> BudgetRecord:
        """Convert a spreadsheet row to a BudgetRecord."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default
        
        return BudgetRecord(
            user_id=safe_get(0),
            updated_at=datetime.fromisoformat(safe_get(2)),
            profile=BudgetProfile.model_validate_json(safe_get(16)),
            allocation=BudgetAllocation.model_validate_json(safe_get(17)),
            health=BudgetHealth.model_validate_json(safe_get(18)),
        )
    
    def _find_row_index(self, all_rows: list[list], user_id: str) -> Optional[int]:
        """
        Sheet row number (1-based, header is row 1) for a user.
        
        Raises:
            DuplicateError: If the user has more than one row
        """
        matches = [
            idx for idx, row in enumerate(all_rows[1:], start=2)
            if row and row[0] == user_id
        ]
        if len(matches) > 1:
            raise DuplicateError(
                f"User {user_id} has {len(matches)} budget rows; expected one"
            )
        return matches[0] if matches else None
    
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def save_budget(self, record: BudgetRecord) -> bool:
        """Insert or overwrite a user's budget row."""
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()
            row = self._record_to_row(record)
            
            idx = self._find_row_index(all_rows, record.user_id)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")
    
    async def get_budget(self, user_id: str) -> Optional[BudgetRecord]:
        """Retrieve a user's budget."""
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()
            
            idx = self._find_row_index(all_rows, user_id)
            if idx is None:
                return None
            return self._row_to_record(all_rows[idx - 1])
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get budget: {e}")
    
    async def delete_budget(self, user_id: str) -> bool:
        """Delete a user's budget row."""
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()
            
            idx = self._find_row_index(all_rows, user_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete budget: {e}")
    
    async def list_budgets(
        self,
        city: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[BudgetRecord]:
        """List budgets with an optional city filter."""
        try:
            sheet = self._client.get_budgets_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
            
            records = []
            for row in all_rows:
                if not row or not row[0]:  # Skip empty rows
                    continue
                
                try:
                    record = self._row_to_record(row)
                except Exception:
                    continue  # Skip malformed rows
                
                if city and record.profile.city.lower() != city.strip().lower():
                    continue
                
                records.append(record)
            
            # Newest first
            records.sort(key=lambda r: r.updated_at, reverse=True)
            
            return records[offset:offset + limit]
        except Exception as e:
            raise StorageError(f"Failed to list budgets: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.
    
    Audit events are append-only.
    """
    
    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
    
    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default
        
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )
    
    def _read_events(self, keep) -> list[AuditEvent]:
        """Parse every audit row accepted by `keep`, skipping malformed ones."""
        sheet = self._client.get_audit_sheet()
        all_rows = sheet.get_all_values()[1:]
        
        events = []
        for row in all_rows:
            if not row or not row[0] or not keep(row):
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                continue
        return events
    
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")
    
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = self._read_events(
                lambda row: len(row) > 6 and row[6] == str(correlation_id)
            )
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
    
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = self._read_events(
                lambda row: (
                    len(row) > 5
                    and row[4] == entity_type
                    and row[5] == str(entity_id)
                )
            )
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
    
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events(lambda row: True)
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
