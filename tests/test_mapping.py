import unittest

from cpf_batch.mapping import CPF_KEYS, NAME_KEYS, PHONE_KEYS, map_row, map_rows


class MapRowTests(unittest.TestCase):
    def test_recognized_columns(self):
        record = map_row({"Nome": "Ana Souza", "CPF": "529.982.247-25", "Celular": "(11) 98765-4321"}, 0)
        self.assertEqual(record.id, 1)
        self.assertEqual(record.nome, "Ana Souza")
        self.assertEqual(record.cpf, "529.982.247-25")
        self.assertEqual(record.telefone, "(11) 98765-4321")
        self.assertTrue(record.is_valid)

    def test_every_cpf_spelling_is_recognized(self):
        for key in CPF_KEYS:
            with self.subTest(key=key):
                record = map_row({"Outro": "x", key: "52998224725"}, 0)
                self.assertTrue(record.is_valid)

    def test_name_and_phone_spellings(self):
        for key in NAME_KEYS:
            with self.subTest(key=key):
                self.assertEqual(map_row({key: "Bia"}, 0).nome, "Bia")
        for key in PHONE_KEYS:
            with self.subTest(key=key):
                self.assertEqual(map_row({key: "61 3456-7890"}, 0).telefone, "61 3456-7890")

    def test_priority_order_between_spellings(self):
        record = map_row({"doc": "11144477735", "cpf": "52998224725"}, 0)
        self.assertEqual(record.cpf, "529.982.247-25")

    def test_none_values_are_skipped(self):
        record = map_row({"cpf": None, "doc": "52998224725", "nome": None, "Name": "Caio"}, 0)
        self.assertEqual(record.cpf, "529.982.247-25")
        self.assertEqual(record.nome, "Caio")

    def test_fallback_to_first_column(self):
        record = map_row({"Codigo": "52998224725"}, 0)
        self.assertEqual(record.cpf, "529.982.247-25")
        self.assertTrue(record.is_valid)

    def test_fallback_can_pick_unrelated_column(self):
        record = map_row({"ID": 42, "Valor": "52998224725"}, 0)
        self.assertEqual(record.cpf, "000.000.000-42")
        self.assertFalse(record.is_valid)

    def test_recognized_but_empty_cpf_does_not_fall_back(self):
        record = map_row({"ID": 52998224725, "CPF": None}, 0)
        self.assertEqual(record.cpf, "000.000.000-00")
        self.assertFalse(record.is_valid)

    def test_empty_row(self):
        record = map_row({}, 0)
        self.assertEqual(record.cpf, "000.000.000-00")
        self.assertFalse(record.is_valid)
        self.assertEqual(record.nome, "Registro 1")
        self.assertEqual(record.telefone, "-")

    def test_defaults_use_one_based_index(self):
        record = map_row({"cpf": "52998224725"}, 2)
        self.assertEqual(record.id, 3)
        self.assertEqual(record.nome, "Registro 3")
        self.assertEqual(record.telefone, "-")

    def test_blank_name_and_phone_use_defaults(self):
        record = map_row({"cpf": "52998224725", "nome": "", "telefone": ""}, 4)
        self.assertEqual(record.nome, "Registro 5")
        self.assertEqual(record.telefone, "-")
        self.assertTrue(record.is_valid)

    def test_numeric_cell_without_leading_zero(self):
        record = map_row({"CPF": 1234567890}, 0)
        self.assertEqual(record.cpf, "012.345.678-90")
        self.assertTrue(record.is_valid)

        float_record = map_row({"CPF": 191.0}, 0)
        self.assertEqual(float_record.cpf, "000.000.001-91")
        self.assertTrue(float_record.is_valid)

    def test_overlong_cpf_passes_through_unformatted(self):
        record = map_row({"cpf": "529.982.247-251"}, 0)
        self.assertEqual(record.cpf, "529982247251")
        self.assertFalse(record.is_valid)


class MapRowsTests(unittest.TestCase):
    def test_one_record_per_row_and_counts(self):
        rows = [
            {"cpf": "52998224725"},
            {"cpf": "52998224724"},
            {"cpf": "11111111111"},
            {},
            {"Codigo": "111.444.777-35"},
        ]
        result = map_rows(rows)
        self.assertEqual(result.total, len(rows))
        self.assertEqual([record.id for record in result.records], [1, 2, 3, 4, 5])
        self.assertEqual(result.valid_count, 2)
        self.assertEqual(result.invalid_count, 3)
        self.assertEqual(result.valid_count + result.invalid_count, result.total)
        self.assertEqual(len(result.valid_records()), 2)
        self.assertEqual(len(result.invalid_records()), 3)

    def test_empty_input(self):
        result = map_rows([])
        self.assertEqual(result.records, [])
        self.assertEqual(result.valid_count, 0)
        self.assertEqual(result.invalid_count, 0)

    def test_accepts_generators(self):
        result = map_rows({"cpf": cpf} for cpf in ["52998224725", "191"])
        self.assertEqual(result.total, 2)
        self.assertEqual(result.valid_count, 2)


if __name__ == "__main__":
    unittest.main()
