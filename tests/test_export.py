import tempfile
import unittest
from pathlib import Path

import pandas as pd

from cpf_batch.export import EXPORT_COLUMNS, export_records, filter_by_status

RECORDS = [
    {"cpf": "52998224725", "nome": "Ana", "telefone": "11 98765-4321", "status": "Finalizado", "updated_at": "2024-05-02T10:00:00"},
    {"cpf": "11144477735", "nome": "Bia", "telefone": None, "status": "Erro", "updated_at": "2024-05-02T11:00:00"},
    {"cpf": "00000000191", "nome": "Caio", "telefone": None, "status": "Finalizado", "updated_at": None},
    {"cpf": "67047129090", "nome": "Dani", "telefone": None, "status": "Pendente", "updated_at": None},
]


class FilterTests(unittest.TestCase):
    def test_filter_by_status(self):
        self.assertEqual([r["nome"] for r in filter_by_status(RECORDS, "Finalizado")], ["Ana", "Caio"])
        self.assertEqual(len(filter_by_status(RECORDS, "all")), 4)
        self.assertEqual(filter_by_status(RECORDS, "Em execução"), [])

    def test_unknown_status(self):
        with self.assertRaises(ValueError):
            filter_by_status(RECORDS, "Pausado")


class ExportTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_export_finished_records(self):
        path = self.tmp / "export" / "lote.xlsx"
        written = export_records(RECORDS, path)
        self.assertEqual(written, 2)
        df = pd.read_excel(path, dtype=str)
        self.assertListEqual(list(df.columns), EXPORT_COLUMNS)
        self.assertListEqual(df["CPF"].tolist(), ["529.982.247-25", "000.000.001-91"])
        self.assertListEqual(df["Telefone"].tolist(), ["11 98765-4321", "-"])

    def test_export_without_matches_writes_header(self):
        path = self.tmp / "vazio.xlsx"
        self.assertEqual(export_records(RECORDS, path, status="Em execução"), 0)
        df = pd.read_excel(path)
        self.assertTrue(df.empty)
        self.assertListEqual(list(df.columns), EXPORT_COLUMNS)


if __name__ == "__main__":
    unittest.main()
