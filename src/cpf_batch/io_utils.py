"""Input/output helpers for CSV and XLSX."""
from __future__ import annotations

import csv
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .mapping import CPFRecord

SUPPORTED_SUFFIXES = {".csv", ".xlsx"}
OUTPUT_COLUMNS = ["ID", "Nome", "CPF", "Telefone", "Valido"]
EMPTY_SHEET_MESSAGE = "A planilha está vazia ou não contém dados válidos"

logger = logging.getLogger(__name__)


@dataclass
class SheetData:
    rows: List[Dict[str, Any]]
    header: List[str]
    filename: str


class InputError(Exception):
    pass


def _ensure_rows(rows: List[Dict[str, Any]], path: Path) -> None:
    if not rows:
        raise InputError(f"{EMPTY_SHEET_MESSAGE}: {path.name}")


def read_csv(path: Path) -> SheetData:
    text = path.read_text(encoding="utf-8-sig")
    sample = text[:2048]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        delimiter = ","

    rows: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle, delimiter=delimiter)
        if reader.fieldnames is None:
            raise InputError("Arquivo CSV sem cabeçalho válido")
        header = [name.strip() for name in reader.fieldnames if name and name.strip()]
        for row in reader:
            row_dict = {
                key.strip(): (value if value else None)
                for key, value in row.items()
                if key and key.strip()
            }
            if any(value is not None for value in row_dict.values()):
                rows.append(row_dict)

    _ensure_rows(rows, path)
    logger.info("%d linhas lidas de %s", len(rows), path.name)
    return SheetData(rows=rows, header=header, filename=path.name)


def read_xlsx(path: Path) -> SheetData:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
        raise InputError(f"Não foi possível ler a planilha {path.name} ({exc})") from exc

    try:
        worksheet = workbook.worksheets[0]
        row_iter = worksheet.iter_rows(values_only=True)
        header_cells = next(row_iter, None)
        if header_cells is None:
            raise InputError(f"{EMPTY_SHEET_MESSAGE}: {path.name}")
        header = [str(value).strip() if value is not None else "" for value in header_cells]

        rows: List[Dict[str, Any]] = []
        for row in row_iter:
            row_dict: Dict[str, Any] = {}
            for idx, column in enumerate(header):
                if not column:
                    continue
                value = row[idx] if idx < len(row) else None
                if isinstance(value, str) and not value.strip():
                    value = None
                row_dict[column] = value
            if any(value is not None for value in row_dict.values()):
                rows.append(row_dict)
    finally:
        workbook.close()

    _ensure_rows(rows, path)
    logger.info("%d linhas lidas de %s", len(rows), path.name)
    return SheetData(rows=rows, header=[column for column in header if column], filename=path.name)


def read_rows(path: Path) -> SheetData:
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise InputError("Formato inválido: use .xlsx ou .csv")
    if not path.exists():
        raise InputError(f"Arquivo não encontrado: {path}")
    if suffix == ".csv":
        return read_csv(path)
    return read_xlsx(path)


def _output_row(record: CPFRecord) -> List[Any]:
    return [record.id, record.nome, record.cpf, record.telefone, "Sim" if record.is_valid else "Não"]


def write_csv(path: Path, records: Sequence[CPFRecord], delimiter: str = ",") -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, delimiter=delimiter)
        writer.writerow(OUTPUT_COLUMNS)
        for record in records:
            writer.writerow(_output_row(record))


def write_xlsx(path: Path, records: Sequence[CPFRecord]) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "validacao"
    sheet.append(OUTPUT_COLUMNS)
    for record in records:
        sheet.append(_output_row(record))
    workbook.save(path)


def write_rows(path: Path, records: Sequence[CPFRecord]) -> None:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        write_csv(path, records)
    elif suffix == ".xlsx":
        write_xlsx(path, records)
    else:
        raise InputError("Formato de saída inválido: use .xlsx ou .csv")
