"""
Google Sheets ledger table.

A thin wrapper over the Sheets v4 values API exposing the two calls the
ledger needs: append one row to a range and read the values of a range.
Transport failures are mapped onto the application error taxonomy.
"""

import logging
from typing import Any, Callable, List, Optional, Protocol, Sequence

import google_auth_httplib2
import httplib2
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..errors import AppError, ConfigError, LedgerError, NetworkError, OperationTimeoutError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
VALUE_INPUT_OPTION = "USER_ENTERED"


class LedgerTable(Protocol):
    """Row-level access to a spreadsheet-like ledger"""

    def append_row(self, range_name: str, row: Sequence[Any]) -> None:
        ...

    def get_values(self, range_name: str) -> List[List[Any]]:
        ...


class GoogleSheetsTable:
    """
    Ledger table backed by one Google spreadsheet.

    The Sheets service is built on first use so that constructing the table
    never touches the credentials file or the network.
    """

    def __init__(self,
                 spreadsheet_id: str,
                 service_account_file: str = "google-service-account.json",
                 timeout: float = 30,
                 service: Optional[Any] = None):
        """
        Initialize the table.

        Args:
            spreadsheet_id: Target spreadsheet ID
            service_account_file: Path to the service account JSON key
            timeout: Socket timeout in seconds for every request
            service: Pre-built Sheets service, mainly for tests
        """
        self.spreadsheet_id = spreadsheet_id
        self.service_account_file = service_account_file
        self.timeout = timeout
        self._service = service

    @property
    def service(self) -> Any:
        if self._service is None:
            self._service = self._build_service()
        return self._service

    def _build_service(self) -> Any:
        try:
            credentials = service_account.Credentials.from_service_account_file(
                self.service_account_file, scopes=SHEETS_SCOPES
            )
        except (OSError, ValueError) as e:
            raise ConfigError(
                "unable to load Google service account credentials", e
            ).with_context("service_account_file", self.service_account_file)

        authorized_http = google_auth_httplib2.AuthorizedHttp(
            credentials, http=httplib2.Http(timeout=self.timeout)
        )
        logger.info(f"Built Sheets client for spreadsheet {self.spreadsheet_id}")
        return build("sheets", "v4", http=authorized_http, cache_discovery=False)

    def _execute(self, operation: str, range_name: str, request_factory: Callable[[], Any]) -> Any:
        try:
            return request_factory().execute()
        except AppError:
            raise
        except HttpError as e:
            status = getattr(getattr(e, "resp", None), "status", "unknown")
            raise LedgerError(
                f"Sheets {operation} failed", e
            ).with_context("range", range_name).with_context("status", status)
        except TimeoutError as e:
            raise OperationTimeoutError(
                f"Sheets {operation} exceeded {self.timeout}s", e, component="spreadsheet"
            ).with_context("range", range_name)
        except (httplib2.HttpLib2Error, OSError) as e:
            raise NetworkError(
                f"Sheets {operation} could not reach the server", e, component="spreadsheet"
            ).with_context("range", range_name)

    def append_row(self, range_name: str, row: Sequence[Any]) -> None:
        """Append one row after the last non-empty row of ``range_name``"""
        values = self.service.spreadsheets().values()
        self._execute("append", range_name, lambda: values.append(
            spreadsheetId=self.spreadsheet_id,
            range=range_name,
            valueInputOption=VALUE_INPUT_OPTION,
            body={"values": [list(row)]}
        ))

    def get_values(self, range_name: str) -> List[List[Any]]:
        """Read ``range_name``; trailing empty cells are omitted by the API"""
        values = self.service.spreadsheets().values()
        result = self._execute("read", range_name, lambda: values.get(
            spreadsheetId=self.spreadsheet_id,
            range=range_name
        ))
        return result.get("values", []) if result else []
