#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Превращение CSV-таблицы переводов в JSON-файлы локалей.

Ожидаемая структура листа:
- первая строка — заголовки,
- колонка ``key`` — ключ перевода,
- все остальные колонки — коды языков (en, fr, ...).

Результат в папке локалей:
- <lang>.json      — {ключ: перевод} для каждого языка,
- keys.json        — {ключ: ключ} для всех ключей таблицы,
- languages.json   — список кодов языков.
"""

from __future__ import annotations

import csv
import io
import json
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

KEY_COLUMN = "key"
KEYS_FILENAME = "keys.json"
LANGUAGES_FILENAME = "languages.json"
RESERVED_NAMES = {"keys", "languages"}

NEWLINE_RE = re.compile(r"\r?\n")


@dataclass
class TranslationBundle:
    translations: Dict[str, Dict[str, str]] = field(default_factory=dict)
    keys: Dict[str, str] = field(default_factory=dict)
    # dict вместо set: порядок первого появления языка
    languages: Dict[str, None] = field(default_factory=dict)
    # колонки без заголовка: заметки переводчикам и т.п.
    skipped_columns: int = 0

    @property
    def language_codes(self) -> List[str]:
        return list(self.languages)

    def summary(self) -> Dict[str, int]:
        return {
            "keys": len(self.keys),
            "languages": len(self.languages),
            "values": sum(len(values) for values in self.translations.values()),
        }


def escape_value(raw: str) -> str:
    """Экранирует \\, кавычки и переводы строк (именно в этом порядке) и обрезает пробелы."""
    value = raw.replace("\\", "\\\\")
    value = value.replace('"', '\\"')
    value = NEWLINE_RE.sub(r"\\n", value)
    return value.strip()


def raise_field_size_limit() -> None:
    # незакрытая кавычка склеивает хвост листа в одно поле
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return
        except OverflowError:
            limit //= 10


def parse_rows(text: str) -> List[Dict[str, Optional[str]]]:
    raise_field_size_limit()
    reader = csv.DictReader(io.StringIO(text, newline=""))
    return [dict(row) for row in reader]


def build_translations(rows: Iterable[Mapping[Optional[str], object]]) -> TranslationBundle:
    bundle = TranslationBundle()
    header_checked = False
    for row in rows:
        if not header_checked:
            bundle.skipped_columns = sum(1 for name in row if isinstance(name, str) and not name.strip())
            header_checked = True

        raw_key = row.get(KEY_COLUMN)
        key = raw_key.strip() if isinstance(raw_key, str) else ""
        if not key:
            continue

        bundle.keys[key] = key

        for lang, value in row.items():
            # None — хвост строки длиннее заголовка, "" — колонка без заголовка
            if lang is None or lang == KEY_COLUMN or not lang.strip():
                continue
            if not value or not isinstance(value, str):
                continue
            bundle.translations.setdefault(lang, {})
            bundle.languages.setdefault(lang, None)
            bundle.translations[lang][key] = escape_value(value)
    return bundle


def transform_csv(text: str) -> TranslationBundle:
    return build_translations(parse_rows(text))


def validate_language_codes(codes: Iterable[str]) -> None:
    bad: List[str] = []
    for code in codes:
        if code in RESERVED_NAMES or re.search(r"[\\/]", code):
            bad.append(code)
    if bad:
        listed = ", ".join(repr(code) for code in bad)
        raise ValueError(
            f"Недопустимые названия колонок языков: {listed}. "
            f"Имена {sorted(RESERVED_NAMES)} заняты служебными файлами."
        )


def dump_json(data: object) -> str:
    # Формат JSON.stringify(data, null, 2): без \n в конце, юникод как есть
    return json.dumps(data, ensure_ascii=False, indent=2)


def write_json(path: Path, data: object) -> None:
    path.write_text(dump_json(data), encoding="utf-8")


def write_locales(bundle: TranslationBundle, output_dir: Path) -> List[Path]:
    """
    Пишет файлы локалей в ``output_dir`` (папка создаётся при необходимости).

    Существующие файлы перезаписываются. Ошибки файловой системы не
    перехватываются: то, что успело записаться до ошибки, остаётся на диске.
    """
    validate_language_codes(bundle.translations)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for lang, data in bundle.translations.items():
        path = output_dir / f"{lang}.json"
        write_json(path, data)
        written.append(path)

    keys_path = output_dir / KEYS_FILENAME
    write_json(keys_path, bundle.keys)
    written.append(keys_path)

    languages_path = output_dir / LANGUAGES_FILENAME
    write_json(languages_path, bundle.language_codes)
    written.append(languages_path)
    return written
