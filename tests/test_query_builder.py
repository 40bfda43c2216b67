import unittest
import sys
import os
import tempfile

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from query_builder import build_query, name_clause, parse_search_url, read_names_file


class TestBuildQuery(unittest.TestCase):
    def test_literal_term_is_returned_unchanged(self):
        term = 'Vibrio cholerae[Organism] AND latest[filter]'
        self.assertEqual(build_query(term=term), term)

    def test_single_name_has_no_or(self):
        self.assertEqual(build_query(names=['ASM584v2']), '"ASM584v2"[NAME]')

    def test_names_are_or_joined_in_input_order(self):
        query = build_query(names=['B', 'A', 'C'])
        self.assertEqual(query, '"B"[NAME] OR "A"[NAME] OR "C"[NAME]')

    def test_custom_field(self):
        self.assertEqual(name_clause('GCA_000005845.2', 'ASAC'), '"GCA_000005845.2"[ASAC]')

    def test_empty_names_rejected(self):
        with self.assertRaises(ValueError):
            build_query(names=[])


class TestNamesFile(unittest.TestCase):
    def test_skips_blank_lines_and_comments(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'names.txt')
            with open(path, 'w') as f:
                f.write("# wanted assemblies\nASM1\n\n  ASM2  \n")
            self.assertEqual(read_names_file(path), ['ASM1', 'ASM2'])


class TestParseSearchUrl(unittest.TestCase):
    def test_parse_url(self):
        url = "https://www.ncbi.nlm.nih.gov/assembly/?term=vibrio+cholerae"
        self.assertEqual(parse_search_url(url), "vibrio cholerae")

    def test_term_from_path_below_database(self):
        self.assertEqual(parse_search_url("https://www.ncbi.nlm.nih.gov/assembly/ASM584v2"), "ASM584v2")

    def test_bare_database_page_has_no_term(self):
        self.assertIsNone(parse_search_url("https://www.ncbi.nlm.nih.gov/assembly"))
        self.assertIsNone(parse_search_url("https://www.ncbi.nlm.nih.gov/assembly/"))

    def test_foreign_host(self):
        self.assertIsNone(parse_search_url("https://example.org/?term=x"))


if __name__ == '__main__':
    unittest.main()
