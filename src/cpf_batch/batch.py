"""Batch drafts and the payloads persisted for external processing."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, TypeVar

from .mapping import MISSING_PHONE, CPFRecord, MappingResult
from .validators import clean_cpf

BANK_APIS = {
    "banco_brasil": "Banco do Brasil",
    "caixa": "Caixa Econômica Federal",
    "bradesco": "Bradesco",
    "itau": "Itaú",
    "santander": "Santander",
}

STATUS_PENDING = "Pendente"
STATUS_RUNNING = "Em execução"
STATUS_DONE = "Finalizado"
STATUS_PAUSED = "Pausado"
STATUS_ERROR = "Erro"
BATCH_STATUSES = (STATUS_PENDING, STATUS_RUNNING, STATUS_DONE, STATUS_PAUSED, STATUS_ERROR)
RECORD_STATUSES = (STATUS_PENDING, STATUS_RUNNING, STATUS_DONE, STATUS_ERROR)

DEFAULT_FILENAME = "arquivo.xlsx"
INSERT_CHUNK_SIZE = 100

T = TypeVar("T")


class BatchError(Exception):
    pass


@dataclass
class BatchDraft:
    name: str
    bank_api: str
    filename: str
    total_cpfs: int
    valid_cpfs: int
    invalid_cpfs: int
    status: str = STATUS_PENDING

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


def build_batch(
    result: MappingResult,
    name: str,
    bank_api: str,
    filename: Optional[str] = None,
) -> BatchDraft:
    name = (name or "").strip()
    if not name:
        raise BatchError("Por favor, informe um nome para o lote")
    if bank_api not in BANK_APIS:
        options = ", ".join(sorted(BANK_APIS))
        raise BatchError(f"API de banco desconhecida: {bank_api!r} (opções: {options})")
    if result.total == 0:
        raise BatchError("O lote não contém registros")

    return BatchDraft(
        name=name,
        bank_api=bank_api,
        filename=filename or DEFAULT_FILENAME,
        total_cpfs=result.total,
        valid_cpfs=result.valid_count,
        invalid_cpfs=result.invalid_count,
    )


def build_record_payloads(records: Sequence[CPFRecord], batch_id: str) -> List[Dict[str, Any]]:
    payloads: List[Dict[str, Any]] = []
    for record in records:
        telefone = record.telefone if record.telefone not in ("", MISSING_PHONE) else None
        payloads.append(
            {
                "batch_id": batch_id,
                "cpf": clean_cpf(record.cpf),
                "nome": record.nome,
                "telefone": telefone,
                "is_valid": record.is_valid,
                "status": STATUS_PENDING,
                "result": None,
            }
        )
    return payloads


def chunked(items: Sequence[T], size: int = INSERT_CHUNK_SIZE) -> Iterator[Sequence[T]]:
    if size <= 0:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]
