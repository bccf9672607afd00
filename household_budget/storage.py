"""
storage.py - document store backends for the account record

Each backend stores one account document per user id and exposes:
    fetch(user_id)         -> (exists, data)
    replace(user_id, data) -> None   (full overwrite, no merge, no version check)

Backends:
 - GoogleSheetsBackend: "accounts", "categories" and "history" worksheets, one row per value
 - LocalJsonBackend: a JSON file mapping user_id -> document, written atomically

Failures while reading or writing are logged and raised as StorageError.
"""

from typing import Dict, Tuple, Any, Optional
import ast
import json
import logging
import os
import shutil
import tempfile

import google.auth
import gspread
from google.oauth2.service_account import Credentials

DEFAULT_USER_ID = "demoUser"

# location of the local JSON store (repo root /data)
DEFAULT_DATA_FILE = os.path.join(os.path.dirname(__file__), "..", "data", "household_data.json")

# one handler on the package logger covers storage and store messages
_package_logger = logging.getLogger("household_budget")
if not _package_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    _package_logger.addHandler(handler)
    _package_logger.setLevel(logging.INFO)

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the document store cannot be read or written."""


def configured_user_id() -> str:
    return (os.getenv("HOUSEHOLD_USER_ID") or "").strip() or DEFAULT_USER_ID


def configured_data_file() -> str:
    return (os.getenv("HOUSEHOLD_DATA_FILE") or "").strip() or DEFAULT_DATA_FILE


class GoogleSheetsBackend:
    """
    Google Sheets persistence backend.

    Data layout (every row starts with the owning user_id):
      - worksheet "accounts": (user_id, balance); a row here means the user exists
      - worksheet "categories": (user_id, name), one row per category in order
      - worksheet "history": (user_id, date, amount, category), one row per expense

    Keeping one small value per cell stays clear of the per-cell size limit
    however long the history grows. A replace rewrites the user's rows on all
    three worksheets and keeps other users' rows as they were.
    """

    NAME = "google_sheets"
    SHEETS = {
        "accounts": ["user_id", "balance"],
        "categories": ["user_id", "name"],
        "history": ["user_id", "date", "amount", "category"],
    }
    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

    def __init__(self, sheet_id: Optional[str] = None, worksheets: Optional[Dict[str, Any]] = None):
        self.available = False
        self.reason = ""
        self.sheet_id = (sheet_id if sheet_id is not None else os.getenv("GOOGLE_SHEET_ID") or "").strip()
        self._spreadsheet = None
        self._worksheets: Dict[str, Any] = dict(worksheets or {})

        if worksheets is not None:
            # pre-opened worksheets (e.g. shared client)
            self._ensure_headers()
            self.available = True
            return
        if not self.sheet_id:
            self.reason = "GOOGLE_SHEET_ID is not set"
            return

        try:
            creds = self._build_credentials()
            client = gspread.authorize(creds)
            self._spreadsheet = client.open_by_key(self.sheet_id)
            for title, headers in self.SHEETS.items():
                self._worksheets[title] = self._get_or_create_worksheet(title, rows=1000, cols=len(headers))
            self._ensure_headers()
            self.available = True
        except Exception as exc:
            self.available = False
            self.reason = f"Google Sheets init failed ({exc.__class__.__name__})"
            logger.warning("Google Sheets backend unavailable: %s", self.reason)

    def _build_credentials(self):
        service_account_json = (os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON") or "").strip()
        service_account_file = (os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE") or "").strip()

        if service_account_json:
            try:
                info = json.loads(service_account_json)
            except ValueError:
                # tolerate Python-dict style strings often used by mistake in env vars
                info = ast.literal_eval(service_account_json)
            if not isinstance(info, dict):
                raise ValueError("GOOGLE_SERVICE_ACCOUNT_JSON must decode to an object")
            return Credentials.from_service_account_info(info, scopes=self.SCOPES)

        if service_account_file:
            return Credentials.from_service_account_file(service_account_file, scopes=self.SCOPES)

        creds, _ = google.auth.default(scopes=self.SCOPES)
        return creds

    def _get_or_create_worksheet(self, title: str, rows: int, cols: int):
        try:
            return self._spreadsheet.worksheet(title)
        except gspread.exceptions.WorksheetNotFound:
            return self._spreadsheet.add_worksheet(title=title, rows=rows, cols=cols)

    @staticmethod
    def _ensure_sheet_size(ws, min_rows: int, min_cols: int):
        new_rows = max(ws.row_count, min_rows)
        new_cols = max(ws.col_count, min_cols)
        if new_rows != ws.row_count or new_cols != ws.col_count:
            ws.resize(rows=new_rows, cols=new_cols)

    def _ensure_headers(self):
        for title, headers in self.SHEETS.items():
            ws = self._worksheets[title]
            first = ws.row_values(1) or []
            if [x.strip() for x in first] != headers:
                self._ensure_sheet_size(ws, 2, len(headers))
                ws.update(range_name="A1", values=[headers], value_input_option="RAW")

    @staticmethod
    def _cell(row, idx: int) -> str:
        return str(row[idx]).strip() if idx < len(row) else ""

    def _split_rows(self, title: str, user_id: str):
        """Return (rows of user_id, rows of everyone else) below the header."""
        mine, others = [], []
        for row in (self._worksheets[title].get_all_values() or [])[1:]:
            if not any(str(c).strip() for c in row):
                continue
            if self._cell(row, 0) == user_id:
                mine.append(row)
            else:
                others.append(row)
        return mine, others

    def _rewrite(self, title: str, rows):
        headers = self.SHEETS[title]
        ws = self._worksheets[title]
        values = [headers] + rows
        self._ensure_sheet_size(ws, len(values) + 10, len(headers))
        ws.clear()
        # RAW keeps user content as plain values (not spreadsheet formulas)
        ws.update(range_name="A1", values=values, value_input_option="RAW")

    def fetch(self, user_id: str) -> Tuple[bool, Dict[str, Any]]:
        try:
            accounts, _ = self._split_rows("accounts", user_id)
            if not accounts:
                return False, {}
            categories, _ = self._split_rows("categories", user_id)
            history, _ = self._split_rows("history", user_id)
            data = {
                "balance": int(self._cell(accounts[0], 1) or 0),
                "categories": [self._cell(r, 1) for r in categories],
                "history": [
                    {
                        "date": self._cell(r, 1),
                        "amount": int(self._cell(r, 2) or 0),
                        "category": self._cell(r, 3),
                    }
                    for r in history
                ],
            }
        except Exception as exc:
            logger.exception("Failed to load account %s from Google Sheets", user_id)
            raise StorageError(f"load failed for {user_id}") from exc
        return True, data

    def replace(self, user_id: str, data: Dict[str, Any]):
        history = list(data.get("history", []) or [])
        categories = list(data.get("categories", []) or [])
        try:
            logger.info("Saving account %s to Google Sheets (entries=%d)", user_id, len(history))
            _, other_history = self._split_rows("history", user_id)
            _, other_categories = self._split_rows("categories", user_id)
            _, other_accounts = self._split_rows("accounts", user_id)
            self._rewrite(
                "history",
                other_history + [
                    [user_id, str(e.get("date", "")), str(e.get("amount", 0)), str(e.get("category", ""))]
                    for e in history
                ],
            )
            self._rewrite("categories", other_categories + [[user_id, str(c)] for c in categories])
            # the accounts row goes last: it marks the document as present
            self._rewrite("accounts", other_accounts + [[user_id, str(data.get("balance", 0))]])
        except Exception as exc:
            logger.exception("Failed to save account %s to Google Sheets", user_id)
            raise StorageError(f"save failed for {user_id}") from exc

    def describe(self) -> str:
        return "Persistent storage active (Google Sheets)."


class LocalJsonBackend:
    """
    Local JSON file backend: {user_id: document, ...}.

    Writes go to a temp file in the same directory and are moved into place.
    """

    NAME = "local_json"

    def __init__(self, path: Optional[str] = None, reason: str = ""):
        self.path = os.path.abspath(path or configured_data_file())
        self.reason = reason

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def fetch(self, user_id: str) -> Tuple[bool, Dict[str, Any]]:
        try:
            all_docs = self._read_all()
        except (OSError, ValueError) as exc:
            logger.exception("Failed to read data file %s", self.path)
            raise StorageError(f"load failed for {user_id}") from exc
        if user_id not in all_docs:
            return False, {}
        return True, dict(all_docs[user_id] or {})

    def replace(self, user_id: str, data: Dict[str, Any]):
        dirn = os.path.dirname(self.path)
        tmp_path = None
        try:
            os.makedirs(dirn, exist_ok=True)
            all_docs = self._read_all()
            all_docs[user_id] = data
            logger.info("Saving account %s to %s", user_id, self.path)
            fd, tmp_path = tempfile.mkstemp(prefix="tmp_household_", dir=dirn, text=True)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(all_docs, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(tmp_path, self.path)
        except (OSError, ValueError) as exc:
            logger.exception("Failed to save data file %s", self.path)
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"save failed for {user_id}") from exc

    def describe(self) -> str:
        reason = self.reason or "Google Sheets not configured"
        return f"Using local file fallback: {reason}."


def build_backend():
    """
    Pick the durable Google Sheets backend when configured and reachable,
    otherwise the local JSON file.
    """
    sheets = GoogleSheetsBackend()
    if sheets.available:
        return sheets
    return LocalJsonBackend(reason=sheets.reason)
