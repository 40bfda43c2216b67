import unittest
import sys
import os
import gzip
import tempfile

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from inventory import build_inventory, is_fasta_file, n50, save_inventory, summarize_fasta


class TestInventory(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.fasta = os.path.join(self.tmp.name, 'A1_genomic.fna.gz')
        with gzip.open(self.fasta, 'wt') as f:
            f.write(">chr1\nGGCCAATT\n>plasmid\nGCAT\n")

    def tearDown(self):
        self.tmp.cleanup()

    def test_is_fasta_file(self):
        self.assertTrue(is_fasta_file('x/A1_genomic.fna.gz'))
        self.assertTrue(is_fasta_file('x/A1_protein.faa.gz'))
        self.assertFalse(is_fasta_file('x/A1_genomic.gff.gz'))
        self.assertFalse(is_fasta_file('x/A1_assembly_report.txt'))

    def test_n50(self):
        self.assertEqual(n50([2, 3, 4, 5, 6]), 5)
        self.assertEqual(n50([]), 0)

    def test_summarize_gzipped_fasta(self):
        stats = summarize_fasta(self.fasta)
        self.assertEqual(stats['file'], 'A1_genomic.fna.gz')
        self.assertEqual(stats['n_sequences'], 2)
        self.assertEqual(stats['total_length'], 12)
        self.assertEqual(stats['longest'], 8)
        self.assertEqual(stats['n50'], 8)
        self.assertEqual(stats['gc_fraction'], 0.5)

    def test_build_inventory_uses_successful_fasta_entries(self):
        gff = os.path.join(self.tmp.name, 'A1_genomic.gff.gz')
        entries = [
            {'assembly_name': 'A1', 'file_type': 'fasta', 'destination': self.fasta, 'status': 'failed'},
            {'assembly_name': 'A1', 'file_type': 'fasta', 'destination': self.fasta, 'status': 'success'},
            {'assembly_name': 'A1', 'file_type': 'gff', 'destination': gff, 'status': 'success'},
            {'assembly_name': 'B2', 'file_type': 'fasta',
             'destination': os.path.join(self.tmp.name, 'missing.fna.gz'), 'status': 'success'},
        ]
        df = build_inventory(entries)
        self.assertEqual(len(df), 1)
        self.assertEqual(df.iloc[0]['assembly_name'], 'A1')
        self.assertEqual(df.iloc[0]['total_length'], 12)

        output = os.path.join(self.tmp.name, 'inventory.tsv')
        self.assertEqual(save_inventory(df, output), output)
        with open(output) as f:
            self.assertTrue(f.readline().startswith('file\tassembly_name'))

    def test_protein_files_have_no_gc_fraction(self):
        protein = os.path.join(self.tmp.name, 'A1_protein.faa.gz')
        with gzip.open(protein, 'wt') as f:
            f.write(">WP_1\nMGGCCGGCCW\n")

        stats = summarize_fasta(protein)
        self.assertEqual(stats['total_length'], 10)
        self.assertIsNone(stats['gc_fraction'])

        df = build_inventory([
            {'assembly_name': 'A1', 'file_type': 'protein', 'destination': protein, 'status': 'success'},
        ])
        self.assertTrue(df['gc_fraction'].isna().all())

    def test_protein_file_type_overrides_extension(self):
        self.assertIsNone(summarize_fasta(self.fasta, protein=True)['gc_fraction'])

    def test_empty_inventory_is_not_written(self):
        df = build_inventory([])
        output = os.path.join(self.tmp.name, 'inventory.tsv')
        self.assertIsNone(save_inventory(df, output))
        self.assertFalse(os.path.exists(output))


if __name__ == '__main__':
    unittest.main()
