#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Источники CSV для генератора переводов.

- опубликованная в интернете Google-таблица (File → Share → Publish to web → CSV),
- закрытая таблица через сервисный аккаунт (gspread),
- локальный CSV, сохранённый ранее.
"""

from __future__ import annotations

import csv
import io
import os
import re
import time
from pathlib import Path
from typing import List, Optional, Sequence

import gspread
import requests
from dotenv import load_dotenv
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials


SESSION_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/csv,text/plain;q=0.9,*/*;q=0.8",
}


class SheetFetchError(RuntimeError):
    """Не удалось получить CSV из источника."""


def now_millis() -> int:
    return int(time.time() * 1000)


def cache_busted_url(url: str, now_ms: Optional[int] = None) -> str:
    # URL опубликованной таблицы уже содержит query (?gid=...&output=csv)
    stamp = now_millis() if now_ms is None else now_ms
    return f"{url}&t={stamp}"


def decode_csv_bytes(payload: bytes) -> str:
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SheetFetchError(f"Ответ не является текстом UTF-8: {exc}") from exc


def fetch_published_csv(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
    now_ms: Optional[int] = None,
) -> str:
    """
    Скачивает CSV опубликованной таблицы одним GET-запросом.

    К URL добавляется параметр ``t`` с текущим временем в миллисекундах,
    чтобы промежуточные кэши не отдавали старую версию. Повторов нет.
    """
    target = cache_busted_url(url, now_ms)
    try:
        if session is None:
            with requests.Session() as own_session:
                response = own_session.get(target, headers=SESSION_HEADERS, timeout=timeout)
        else:
            response = session.get(target, headers=SESSION_HEADERS, timeout=timeout)
    except requests.RequestException as exc:
        raise SheetFetchError(f"Ошибка сети при загрузке таблицы: {exc}") from exc
    if response.status_code >= 400:
        raise SheetFetchError(
            f"Таблица вернула HTTP {response.status_code} для {url}"
        )
    return decode_csv_bytes(response.content)


def parse_spreadsheet_id(value: str) -> str:
    value = (value or "").strip()
    match = re.search(r"/spreadsheets/d/([a-zA-Z0-9-_]+)", value)
    if match:
        return match.group(1)
    if re.fullmatch(r"[a-zA-Z0-9-_]{20,}", value):
        return value
    raise ValueError("Не удалось извлечь Spreadsheet ID. Передайте ссылку или сам ID.")


def load_creds_from_env() -> Credentials:
    load_dotenv(override=True)
    info = {
        "type": os.getenv("TYPE"),
        "project_id": os.getenv("PROJECT_ID"),
        "private_key_id": os.getenv("PRIVATE_KEY_ID"),
        "private_key": (os.getenv("PRIVATE_KEY") or "").replace("\\n", "\n"),
        "client_email": os.getenv("CLIENT_EMAIL"),
        "client_id": os.getenv("CLIENT_ID"),
        "auth_uri": os.getenv("AUTH_URI"),
        "token_uri": os.getenv("TOKEN_URI"),
        "auth_provider_x509_cert_url": os.getenv("AUTH_PROVIDER_X509_CERT_URL"),
        "client_x509_cert_url": os.getenv("CLIENT_X509_CERT_URL"),
        "universe_domain": os.getenv("UNIVERSE_DOMAIN"),
    }
    if not (info["type"] and info["private_key"] and info["client_email"]):
        raise RuntimeError("В .env нет данных сервисного аккаунта для Google API.")
    scopes = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
    return Credentials.from_service_account_info(info, scopes=scopes)


def rows_to_csv_text(rows: Sequence[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        writer.writerow(list(row))
    return buffer.getvalue()


def pick_worksheet(
    spreadsheet: gspread.Spreadsheet, worksheet_gid: Optional[str]
) -> gspread.Worksheet:
    worksheets: List[gspread.Worksheet] = spreadsheet.worksheets()
    if worksheet_gid:
        for ws in worksheets:
            if str(ws.id) == str(worksheet_gid).strip():
                return ws
    if not worksheets:
        raise SheetFetchError(f"В таблице '{spreadsheet.title}' нет листов.")
    return worksheets[0]


def fetch_service_account_csv(
    spreadsheet: str,
    worksheet_gid: Optional[str] = None,
    client: Optional[gspread.Client] = None,
) -> str:
    """Читает лист закрытой таблицы через сервисный аккаунт и отдаёт его как CSV."""
    spreadsheet_id = parse_spreadsheet_id(spreadsheet)
    try:
        if client is None:
            client = gspread.authorize(load_creds_from_env())
        book = client.open_by_key(spreadsheet_id)
        worksheet = pick_worksheet(book, worksheet_gid)
        values = worksheet.get_all_values()
    except SheetFetchError:
        raise
    except (
        RuntimeError,
        GoogleAuthError,
        gspread.exceptions.GSpreadException,
        requests.RequestException,
    ) as exc:
        raise SheetFetchError(f"Не удалось прочитать таблицу {spreadsheet_id}: {exc}") from exc
    return rows_to_csv_text(values)


def read_local_csv(path: Path) -> str:
    path = Path(path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Не найден локальный CSV: {path}")
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        return handle.read()


def save_csv_snapshot(path: Path, text: str) -> Path:
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(text)
    return path
