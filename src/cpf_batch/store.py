"""Thin client for the hosted PostgREST store holding batches and CPF records."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .batch import (
    BATCH_STATUSES,
    STATUS_PAUSED,
    STATUS_RUNNING,
    BatchDraft,
    build_record_payloads,
    chunked,
)
from .mapping import MappingResult

BATCHES_TABLE = "batches"
RECORDS_TABLE = "cpf_records"
PROGRESS_FUNCTION = "get_batches_with_progress"
PAGE_SIZE = 1000
MISSING_TABLE_CODES = {"42P01", "PGRST205"}

logger = logging.getLogger(__name__)


class StoreError(Exception):
    pass


def progress_percent(processed: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half rounds up.
    return int(processed * 100 / total + 0.5)


@dataclass
class StoreConfig:
    url: str
    key: str
    timeout_s: float = 20.0
    max_retries: int = 2

    @classmethod
    def from_env(cls) -> "StoreConfig":
        url = os.getenv("SUPABASE_URL", "").strip()
        key = os.getenv("SUPABASE_KEY", "").strip()
        if not url or not key:
            raise StoreError("SUPABASE_URL and SUPABASE_KEY environment variables must be set")
        try:
            timeout_s = float(os.getenv("STORE_TIMEOUT_S", "20"))
            max_retries = int(os.getenv("STORE_MAX_RETRIES", "2"))
        except ValueError as exc:
            raise StoreError(f"Invalid store setting: {exc}") from exc
        return cls(url=url.rstrip("/"), key=key, timeout_s=timeout_s, max_retries=max_retries)


@dataclass
class ConnectionStatus:
    connected: bool
    error: Optional[str] = None


def _error_payload(response: requests.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text}
    return data if isinstance(data, dict) else {"message": str(data)}


class StoreClient:
    def __init__(self, config: StoreConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session

    @classmethod
    def from_env(cls) -> "StoreClient":
        return cls(StoreConfig.from_env())

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.config.key,
            "Authorization": f"Bearer {self.config.key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table: str) -> str:
        return f"{self.config.url}/rest/v1/{table}"

    def _send(self, method: str, table: str, **kwargs: Any) -> requests.Response:
        sender = self.session.request if self.session is not None else requests.request
        return sender(method, self._url(table), timeout=self.config.timeout_s, **kwargs)

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        prefer: Optional[str] = None,
    ) -> requests.Response:
        last_error: Optional[str] = None
        for attempt in range(self.config.max_retries + 1):
            try:
                response = self._send(method, table, params=params, json=payload, headers=self._headers(prefer))
            except (requests.ConnectionError, requests.Timeout) as exc:
                last_error = str(exc)
                logger.warning("Falha de rede em %s %s (tentativa %d): %s", method, table, attempt + 1, exc)
                continue
            if response.status_code >= 500:
                last_error = f"HTTP {response.status_code}: {_error_payload(response).get('message', '')}"
                logger.warning("Erro do servidor em %s %s (tentativa %d): %s", method, table, attempt + 1, last_error)
                continue
            if response.status_code >= 400:
                message = _error_payload(response).get("message", response.reason)
                raise StoreError(f"{method} {table} falhou com HTTP {response.status_code}: {message}")
            return response
        raise StoreError(f"{method} {table} falhou após {self.config.max_retries + 1} tentativas: {last_error}")

    def create_batch(self, draft: BatchDraft) -> Dict[str, Any]:
        response = self._request("POST", BATCHES_TABLE, payload=draft.to_payload(), prefer="return=representation")
        rows = response.json()
        if not rows:
            raise StoreError("Falha ao criar o lote no banco de dados")
        batch = rows[0] if isinstance(rows, list) else rows
        logger.info("Lote %s criado (%d CPFs)", batch.get("id"), draft.total_cpfs)
        return batch

    def create_records(self, payloads: List[Dict[str, Any]]) -> int:
        inserted = 0
        for number, chunk in enumerate(chunked(payloads), start=1):
            try:
                self._request("POST", RECORDS_TABLE, payload=list(chunk), prefer="return=minimal")
            except StoreError as exc:
                raise StoreError(f"Erro ao inserir o bloco {number} de registros de CPF: {exc}") from exc
            inserted += len(chunk)
        logger.info("%d registros de CPF inseridos", inserted)
        return inserted

    def save_batch(self, result: MappingResult, draft: BatchDraft) -> Dict[str, Any]:
        batch = self.create_batch(draft)
        batch_id = str(batch["id"])
        try:
            self.create_records(build_record_payloads(result.records, batch_id))
        except StoreError:
            # A batch without its records must not reach the workflow engine.
            try:
                self.delete_batch(batch_id)
            except StoreError as cleanup_exc:
                logger.warning("Não foi possível remover o lote incompleto %s: %s", batch_id, cleanup_exc)
            raise
        return batch

    def list_batches(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Batches with processing counts, newest first.

        Without ``user_id`` every batch is returned; otherwise only that user's.
        """
        params = {"is_admin_param": user_id is None, "user_id_param": user_id}
        rows = self._request("POST", f"rpc/{PROGRESS_FUNCTION}", payload=params).json() or []
        batches = []
        for row in rows:
            processed = row.get("processed_count") or 0
            batches.append(
                {
                    **row,
                    "processed_count": processed,
                    "pending_count": row.get("pending_count") or 0,
                    "progress_percent": progress_percent(processed, row.get("total_cpfs") or 0),
                }
            )
        batches.sort(key=lambda batch: batch.get("created_at") or "", reverse=True)
        return batches

    def set_batch_status(self, batch_id: str, status: str) -> Dict[str, Any]:
        if status not in BATCH_STATUSES:
            raise StoreError(f"Status de lote desconhecido: {status!r}")
        rows = self._request(
            "PATCH",
            BATCHES_TABLE,
            params={"id": f"eq.{batch_id}"},
            payload={"status": status},
            prefer="return=representation",
        ).json()
        if not rows:
            raise StoreError(f"Lote {batch_id} não encontrado")
        logger.info("Lote %s agora está %s", batch_id, status)
        return rows[0]

    def start_batch(self, batch_id: str) -> Dict[str, Any]:
        return self.set_batch_status(batch_id, STATUS_RUNNING)

    def pause_batch(self, batch_id: str) -> Dict[str, Any]:
        return self.set_batch_status(batch_id, STATUS_PAUSED)

    def delete_batch(self, batch_id: str) -> None:
        self._request("DELETE", BATCHES_TABLE, params={"id": f"eq.{batch_id}"})
        logger.info("Lote %s excluído", batch_id)

    def list_records(self, batch_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        offset = 0
        while True:
            params = {
                "select": "*",
                "batch_id": f"eq.{batch_id}",
                "order": "created_at.asc",
                "limit": str(PAGE_SIZE),
                "offset": str(offset),
            }
            if status:
                params["status"] = f"eq.{status}"
            page = self._request("GET", RECORDS_TABLE, params=params).json()
            records.extend(page)
            if len(page) < PAGE_SIZE:
                return records
            offset += PAGE_SIZE

    def check_connection(self) -> ConnectionStatus:
        try:
            response = self._send(
                "GET",
                BATCHES_TABLE,
                params={"select": "id", "limit": "1"},
                headers=self._headers(),
            )
        except requests.RequestException as exc:
            return ConnectionStatus(False, f"Falha de rede ao conectar ao banco de dados ({exc})")

        if response.ok:
            return ConnectionStatus(True)

        error = _error_payload(response)
        message = str(error.get("message", ""))
        if error.get("code") in MISSING_TABLE_CODES or response.status_code == 404:
            logger.info("Tabela %s não encontrada, mas a conexão funciona", BATCHES_TABLE)
            return ConnectionStatus(True)
        if "permission denied" in message:
            return ConnectionStatus(True)
        if response.status_code in (401, 403):
            return ConnectionStatus(False, f"Chave de API inválida ou não autorizada ({message})")
        return ConnectionStatus(False, f"Erro ao comunicar com o banco de dados: {message}")
