"""Command line interface for CPF batch validation."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .batch import BANK_APIS, STATUS_DONE, BatchError, build_batch
from .export import EXPORT_ALL, EXPORT_STATUSES, export_records
from .io_utils import SUPPORTED_SUFFIXES, InputError, read_rows, write_rows
from .mapping import MappingResult, map_rows
from .store import StoreClient, StoreError


def build_output_path(input_path: Path, output_path: Optional[Path]) -> Path:
    if output_path:
        return output_path
    return input_path.with_name(f"{input_path.stem}_validado{input_path.suffix}")


def summarize(result: MappingResult) -> str:
    return f"{result.total} registros: {result.valid_count} válidos, {result.invalid_count} inválidos"


def connected_client() -> StoreClient:
    client = StoreClient.from_env()
    status = client.check_connection()
    if not status.connected:
        raise StoreError(status.error or "Não foi possível conectar ao banco de dados")
    return client


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validação de CPFs em lote a partir de planilhas.")
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--input", help="Arquivo de entrada (.xlsx ou .csv)")
    mode.add_argument("--export-batch", metavar="ID", help="Exportar os registros de um lote salvo (.xlsx)")
    mode.add_argument("--list-batches", action="store_true", help="Listar os lotes com o progresso")
    mode.add_argument("--start-batch", metavar="ID", help="Iniciar o processamento de um lote")
    mode.add_argument("--pause-batch", metavar="ID", help="Pausar o processamento de um lote")
    mode.add_argument("--delete-batch", metavar="ID", help="Excluir um lote")
    parser.add_argument("--output", help="Arquivo de saída (mesma extensão do input; .xlsx na exportação)")
    parser.add_argument("--save", action="store_true", help="Salvar o lote no banco para processamento")
    parser.add_argument("--batch-name", help="Nome do lote (obrigatório com --save)")
    parser.add_argument("--bank-api", choices=sorted(BANK_APIS), help="API do banco (obrigatória com --save)")
    parser.add_argument(
        "--status",
        choices=EXPORT_STATUSES,
        default=STATUS_DONE,
        help="Status dos registros exportados (padrão: Finalizado)",
    )
    parser.add_argument("--verbose", action="store_true", help="Logs verbosos")
    return parser


def validate_file(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    output_path = build_output_path(input_path, Path(args.output) if args.output else None)

    if input_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise InputError("Formato inválido: use .xlsx ou .csv")
    if output_path.suffix.lower() != input_path.suffix.lower():
        raise InputError("A saída deve ter a mesma extensão do arquivo de entrada")

    data = read_rows(input_path)
    result = map_rows(data.rows)
    write_rows(output_path, result.records)
    print(summarize(result))
    logging.info("Arquivo de saída gerado em %s", output_path)

    if args.save:
        draft = build_batch(result, args.batch_name or "", args.bank_api or "", data.filename)
        batch = connected_client().save_batch(result, draft)
        print(f"Lote salvo com sucesso (id {batch.get('id')}). Aguardando processamento.")


def export_batch(args: argparse.Namespace) -> None:
    output_path = Path(args.output) if args.output else Path(f"lote_{args.export_batch}.xlsx")
    if output_path.suffix.lower() != ".xlsx":
        raise InputError("A exportação gera apenas arquivos .xlsx")
    client = connected_client()
    records = client.list_records(args.export_batch, None if args.status == EXPORT_ALL else args.status)
    written = export_records(records, output_path, args.status)
    print(f"{written} registros exportados para {output_path}")


def list_batches() -> None:
    for batch in connected_client().list_batches():
        print(
            f"{batch.get('id')}\t{batch.get('name')}\t{batch.get('status')}\t"
            f"{batch.get('processed_count')}/{batch.get('total_cpfs') or 0} ({batch['progress_percent']}%)"
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format="%(message)s")

    try:
        if args.input:
            validate_file(args)
        elif args.export_batch:
            export_batch(args)
        elif args.list_batches:
            list_batches()
        elif args.start_batch:
            batch = connected_client().start_batch(args.start_batch)
            print(f"Lote {args.start_batch}: {batch.get('status')}")
        elif args.pause_batch:
            batch = connected_client().pause_batch(args.pause_batch)
            print(f"Lote {args.pause_batch}: {batch.get('status')}")
        else:
            connected_client().delete_batch(args.delete_batch)
            print(f"Lote {args.delete_batch} excluído")
        return 0
    except (InputError, BatchError, StoreError) as exc:
        logging.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
