# services/store.py
# Tabular storage for cards, spreads and readings:
# - GoogleSheetsStore: the production spreadsheet (Sheets v4 REST)
# - SqliteStore: local file, same row shape, optionally seeded from CSV

import asyncio
import csv
import json
import logging
import os
from typing import List, Optional, Protocol, Sequence
from urllib.parse import quote

import aiohttp
import aiosqlite
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

Row = List[str]

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class StoreError(RuntimeError):
    """Store unreachable or returned something unusable."""


class TabularStore(Protocol):
    async def read_range(self, range_id: str) -> List[Row]:
        ...

    async def append_row(self, range_id: str, row: Sequence[str]) -> None:
        ...

    async def close(self) -> None:
        ...


def sheet_name(range_id: str) -> str:
    return range_id.split("!", 1)[0]


# ======================
#   GOOGLE SHEETS
# ======================
class GoogleSheetsStore:
    def __init__(
        self,
        spreadsheet_id: str,
        client_email: str,
        private_key: str,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self._client_email = client_email
        self._private_key = private_key
        self._session = session
        self._credentials = None
        self._token_lock = asyncio.Lock()

    def _build_credentials(self):
        info = {
            "type": "service_account",
            "client_email": self._client_email,
            "private_key": self._private_key,
            "token_uri": TOKEN_URI,
        }
        return service_account.Credentials.from_service_account_info(
            info, scopes=SHEETS_SCOPES
        )

    async def _token(self) -> str:
        async with self._token_lock:
            if self._credentials is None:
                try:
                    self._credentials = self._build_credentials()
                except (ValueError, KeyError) as e:
                    raise StoreError(f"Invalid service account credentials: {e}") from e

            if not self._credentials.valid:
                try:
                    # google-auth refresh is blocking
                    await asyncio.to_thread(self._credentials.refresh, Request())
                except GoogleAuthError as e:
                    raise StoreError(f"Token refresh failed: {e}") from e

            return self._credentials.token

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _values_url(self, range_id: str) -> str:
        return f"{SHEETS_API}/{self.spreadsheet_id}/values/{quote(range_id, safe='')}"

    async def read_range(self, range_id: str) -> List[Row]:
        token = await self._token()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            async with self._get_session().get(
                self._values_url(range_id), headers=headers
            ) as resp:
                resp.raise_for_status()
                data = await resp.json()
            return [[str(c) for c in row] for row in data.get("values", [])]
        except asyncio.TimeoutError as e:
            raise StoreError(f"Reading {range_id} timed out") from e
        except (aiohttp.ClientError, ValueError, TypeError, AttributeError) as e:
            raise StoreError(f"Reading {range_id} failed: {e}") from e

    async def append_row(self, range_id: str, row: Sequence[str]) -> None:
        token = await self._token()
        headers = {"Authorization": f"Bearer {token}"}
        url = f"{self._values_url(range_id)}:append"
        try:
            async with self._get_session().post(
                url,
                headers=headers,
                params={"valueInputOption": "RAW"},
                json={"values": [list(row)]},
            ) as resp:
                resp.raise_for_status()
        except asyncio.TimeoutError as e:
            raise StoreError(f"Appending to {range_id} timed out") from e
        except aiohttp.ClientError as e:
            raise StoreError(f"Appending to {range_id} failed: {e}") from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()


# ======================
#   SQLITE
# ======================
class SqliteStore:
    """
    Every sheet lives in one `rows` table, keyed by the sheet name
    (the part of the range id before "!"). Row 0 is the header, like
    in the spreadsheet.
    """

    def __init__(self, db_path: str, seed_dir: Optional[str] = None):
        self.db_path = db_path
        self.seed_dir = seed_dir

    async def init(self):
        folder = os.path.dirname(self.db_path)
        if folder:
            os.makedirs(folder, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS rows (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sheet TEXT NOT NULL,
                    cells TEXT NOT NULL
                )
                """
            )
            await db.execute("CREATE INDEX IF NOT EXISTS rows_sheet ON rows (sheet)")
            await db.commit()

        if self.seed_dir:
            for sheet in ("Cards", "Spreads"):
                await self._seed_sheet(sheet)

    async def _seed_sheet(self, sheet: str):
        path = os.path.join(self.seed_dir, f"{sheet}.csv")
        if not os.path.exists(path):
            return

        async with aiosqlite.connect(self.db_path) as db:
            cur = await db.execute("SELECT COUNT(*) FROM rows WHERE sheet = ?", (sheet,))
            row = await cur.fetchone()
            await cur.close()
            if row and row[0]:
                return

            with open(path, newline="", encoding="utf-8") as f:
                rows = [r for r in csv.reader(f) if r]

            await db.executemany(
                "INSERT INTO rows (sheet, cells) VALUES (?, ?)",
                [(sheet, json.dumps(r, ensure_ascii=False)) for r in rows],
            )
            await db.commit()

        logger.info("Seeded %s with %d rows from %s", sheet, len(rows), path)

    async def read_range(self, range_id: str) -> List[Row]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cur = await db.execute(
                    "SELECT cells FROM rows WHERE sheet = ? ORDER BY id",
                    (sheet_name(range_id),),
                )
                rows = await cur.fetchall()
                await cur.close()
        except aiosqlite.Error as e:
            raise StoreError(f"Reading {range_id} failed: {e}") from e

        return [json.loads(r[0]) for r in rows]

    async def append_row(self, range_id: str, row: Sequence[str]) -> None:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "INSERT INTO rows (sheet, cells) VALUES (?, ?)",
                    (sheet_name(range_id), json.dumps(list(row), ensure_ascii=False)),
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Appending to {range_id} failed: {e}") from e

    async def close(self) -> None:
        return None
