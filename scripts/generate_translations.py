#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Генерация i18n JSON-файлов из Google-таблицы.

1. В таблице: File → Share → Publish to web → формат CSV.
2. Ссылку на CSV укажите в TRANSLATIONS_CSV_URL (.env) или оставьте значение по умолчанию.
3. Запуск из корня приложения: python scripts/generate_translations.py

В src/i18n/locales/ появятся <lang>.json, keys.json и languages.json.
Значения с кавычками, переводами строк и обратными слешами экранируются.
"""

from __future__ import annotations

import csv
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import requests
from dotenv import load_dotenv

from sheet_source import (
    fetch_published_csv,
    fetch_service_account_csv,
    read_local_csv,
    save_csv_snapshot,
)
from translations import TranslationBundle, transform_csv, write_locales


CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vTiOcjQ2wzDCWzPFyCMUYhBw72dTQ-xQp08L_VOuGVo4OnCQnBAJp6OteXXc6kKvJxMEjMe2bhQOgwZ"
    "/pub?gid=0&single=true&output=csv"
)

SOURCES = ("published", "service_account", "local")

DEFAULT_SETTINGS = {
    "csv_url": CSV_URL,
    "output_dir": str(Path("src") / "i18n" / "locales"),
    "source": "published",
}


@dataclass
class Settings:
    csv_url: str
    output_dir: Path
    source: str
    spreadsheet: str = ""
    worksheet_gid: str = ""
    local_csv: Optional[Path] = None
    snapshot_csv: Optional[Path] = None
    timeout: Optional[float] = None
    log_file: Optional[Path] = None


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _optional_path(name: str) -> Optional[Path]:
    value = _env(name)
    return Path(value).expanduser() if value else None


def read_settings_from_env() -> Settings:
    load_dotenv(override=True)

    source = _env("TRANSLATIONS_SOURCE", DEFAULT_SETTINGS["source"]).lower()
    if source not in SOURCES:
        raise ValueError(
            f"Неизвестный TRANSLATIONS_SOURCE: {source!r}. Допустимо: {', '.join(SOURCES)}"
        )

    timeout_raw = _env("TRANSLATIONS_TIMEOUT")
    timeout: Optional[float] = None
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise ValueError(f"TRANSLATIONS_TIMEOUT должен быть числом: {timeout_raw!r}") from exc
        if timeout <= 0:
            raise ValueError("TRANSLATIONS_TIMEOUT должен быть больше нуля.")

    settings = Settings(
        csv_url=_env("TRANSLATIONS_CSV_URL", DEFAULT_SETTINGS["csv_url"]),
        output_dir=Path(_env("TRANSLATIONS_OUTPUT_DIR", DEFAULT_SETTINGS["output_dir"])).expanduser(),
        source=source,
        spreadsheet=_env("TRANSLATIONS_SPREADSHEET"),
        worksheet_gid=_env("TRANSLATIONS_WORKSHEET_GID"),
        local_csv=_optional_path("TRANSLATIONS_LOCAL_CSV"),
        snapshot_csv=_optional_path("TRANSLATIONS_SNAPSHOT_CSV"),
        timeout=timeout,
        log_file=_optional_path("TRANSLATIONS_LOG_FILE"),
    )

    if settings.source == "service_account" and not settings.spreadsheet:
        raise ValueError("Для service_account нужен TRANSLATIONS_SPREADSHEET (ссылка или ID).")
    if settings.source == "local" and settings.local_csv is None:
        raise ValueError("Для local нужен TRANSLATIONS_LOCAL_CSV.")
    return settings


class RunLogger:
    def __init__(self, log_path: Optional[Path] = None) -> None:
        self.log_path = log_path
        self.buffer: List[List[str]] = []

    @property
    def enabled(self) -> bool:
        return self.log_path is not None

    def log(self, message: str, level: str = "INFO") -> None:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{timestamp}] [{level}] {message}"
        stream = sys.stderr if level == "ERROR" else sys.stdout
        print(line, file=stream)
        if not self.enabled:
            return
        self.buffer.append([timestamp, level, message])
        if len(self.buffer) >= 25:
            self.flush()

    def flush(self) -> None:
        if not self.enabled or not self.buffer:
            return
        is_new = not self.log_path.exists()
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        rows = [["Timestamp", "Level", "Message"]] if is_new else []
        rows.extend(self.buffer)
        with self.log_path.open("a", encoding="utf-8", newline="") as handle:
            csv.writer(handle).writerows(rows)
        self.buffer.clear()


def load_csv_text(
    settings: Settings,
    logger: RunLogger,
    session: Optional[requests.Session] = None,
) -> str:
    if settings.source == "local":
        logger.log(f"Чтение локального CSV: {settings.local_csv}")
        return read_local_csv(settings.local_csv)
    if settings.source == "service_account":
        logger.log("Загрузка таблицы через сервисный аккаунт...")
        return fetch_service_account_csv(settings.spreadsheet, settings.worksheet_gid or None)
    logger.log("Загрузка переводов из Google Sheets...")
    return fetch_published_csv(settings.csv_url, session=session, timeout=settings.timeout)


def generate(
    settings: Settings,
    logger: RunLogger,
    session: Optional[requests.Session] = None,
) -> TranslationBundle:
    text = load_csv_text(settings, logger, session=session)
    if settings.snapshot_csv is not None:
        save_csv_snapshot(settings.snapshot_csv, text)
        logger.log(f"Снимок CSV сохранён: {settings.snapshot_csv}")

    bundle = transform_csv(text)
    stats = bundle.summary()
    if not stats["keys"]:
        logger.log("В таблице не найдено ни одного ключа", "WARN")
    if bundle.skipped_columns:
        logger.log(f"Пропущено колонок без заголовка: {bundle.skipped_columns}", "WARN")

    for path in write_locales(bundle, settings.output_dir):
        logger.log(f"✓ Создан {path.name}")

    logger.log(
        f"Готово: ключей {stats['keys']}, языков {stats['languages']}, "
        f"переводов {stats['values']} → {settings.output_dir}"
    )
    return bundle


def main() -> int:
    logger = RunLogger()
    try:
        settings = read_settings_from_env()
        logger = RunLogger(settings.log_file)
        generate(settings, logger)
    except KeyboardInterrupt:
        print("\n[INFO] Операция отменена пользователем.")
        return 130
    except Exception as exc:  # noqa: BLE001
        logger.log(f"Не удалось сгенерировать переводы: {exc}", "ERROR")
        return 1
    finally:
        logger.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
