"""Export stored CPF records to Excel, filtered by processing status."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from .batch import STATUS_DONE, STATUS_ERROR, STATUS_PENDING, STATUS_RUNNING
from .validators import format_cpf

EXPORT_ALL = "all"
EXPORT_STATUSES = (EXPORT_ALL, STATUS_DONE, STATUS_ERROR, STATUS_PENDING, STATUS_RUNNING)
EXPORT_COLUMNS = ["CPF", "Nome", "Telefone", "Status", "Atualizado em"]


def filter_by_status(records: Sequence[Dict[str, Any]], status: str) -> List[Dict[str, Any]]:
    if status not in EXPORT_STATUSES:
        raise ValueError(f"Status de exportação desconhecido: {status!r}")
    if status == EXPORT_ALL:
        return list(records)
    return [record for record in records if record.get("status") == status]


def _export_row(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "CPF": format_cpf(str(record.get("cpf") or "")),
        "Nome": record.get("nome") or "",
        "Telefone": record.get("telefone") or "-",
        "Status": record.get("status") or "",
        "Atualizado em": record.get("updated_at") or "",
    }


def export_records(records: Sequence[Dict[str, Any]], path: Path, status: str = STATUS_DONE) -> int:
    """Write the records matching ``status`` to ``path`` and return how many were written."""
    selected = filter_by_status(records, status)
    df = pd.DataFrame([_export_row(record) for record in selected], columns=EXPORT_COLUMNS)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_excel(path, index=False, sheet_name="cpfs", engine="openpyxl")
    return len(df)
