"""Map spreadsheet rows of arbitrary shape to canonical CPF records."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .validators import cell_to_text, clean_cpf, format_cpf, has_valid_check_digits, pad_cpf

CPF_KEYS = ("cpf", "CPF", "Cpf", "documento", "Documento", "DOCUMENTO", "doc", "Doc", "DOC")
NAME_KEYS = ("nome", "Nome", "NOME", "name", "Name", "NAME")
PHONE_KEYS = (
    "telefone",
    "Telefone",
    "TELEFONE",
    "phone",
    "Phone",
    "PHONE",
    "celular",
    "Celular",
    "CELULAR",
)

MISSING_PHONE = "-"


@dataclass
class CPFRecord:
    id: int
    nome: str
    cpf: str
    telefone: str
    is_valid: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nome": self.nome,
            "cpf": self.cpf,
            "telefone": self.telefone,
            "is_valid": self.is_valid,
        }


@dataclass
class MappingResult:
    records: List[CPFRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def valid_count(self) -> int:
        return sum(1 for record in self.records if record.is_valid)

    @property
    def invalid_count(self) -> int:
        return self.total - self.valid_count

    def valid_records(self) -> List[CPFRecord]:
        return [record for record in self.records if record.is_valid]

    def invalid_records(self) -> List[CPFRecord]:
        return [record for record in self.records if not record.is_valid]


def _first_value(row: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return cell_to_text(value)
    return None


def _extract_cpf(row: Mapping[str, Any]) -> str:
    value = _first_value(row, CPF_KEYS)
    if value is not None:
        return value
    if any(key in row for key in CPF_KEYS):
        return ""
    # No recognized header: the first filled column is taken as the CPF.
    for cell in row.values():
        if cell is not None:
            return cell_to_text(cell)
    return ""


def map_row(row: Mapping[str, Any], index: int) -> CPFRecord:
    """Build the canonical record for the row at 0-based ``index``."""
    candidate = pad_cpf(clean_cpf(_extract_cpf(row)))
    nome = _first_value(row, NAME_KEYS)
    telefone = _first_value(row, PHONE_KEYS)
    return CPFRecord(
        id=index + 1,
        nome=nome or f"Registro {index + 1}",
        cpf=format_cpf(candidate),
        telefone=telefone or MISSING_PHONE,
        is_valid=has_valid_check_digits(candidate),
    )


def map_rows(rows: Iterable[Mapping[str, Any]]) -> MappingResult:
    return MappingResult(records=[map_row(row, idx) for idx, row in enumerate(rows)])
