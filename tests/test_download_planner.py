import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from download_planner import DownloadItem, last_path_segment, plan_downloads, remote_filename
from path_extractor import AssemblyRecord


class TestFilenames(unittest.TestCase):
    def test_last_path_segment(self):
        self.assertEqual(last_path_segment('ftp://host/genomes/GCA_123_ASM1'), 'GCA_123_ASM1')

    def test_remote_filename(self):
        self.assertEqual(remote_filename('ftp://host/genomes/GCA_123_ASM1', 'genomic.fna.gz'),
                         'GCA_123_ASM1_genomic.fna.gz')


class TestPlanDownloads(unittest.TestCase):
    def test_single_assembly_single_type(self):
        records = [AssemblyRecord(name='A1', base_path='ftp://x/y/A1')]
        items = plan_downloads(records, {'fasta': 'genomic.fna.gz'}, 'out')
        self.assertEqual(items, [DownloadItem(
            assembly_name='A1',
            file_type='fasta',
            source='ftp://x/y/A1/A1_genomic.fna.gz',
            destination='out/A1_genomic.fna.gz',
        )])

    def test_n_by_m_items_in_input_order(self):
        records = [
            AssemblyRecord('A1', 'ftp://x/y/A1'),
            AssemblyRecord('B2', 'ftp://x/z/B2'),
            AssemblyRecord('C3', 'rsync://x/w/C3'),
        ]
        wanted = {'fasta': 'genomic.fna.gz', 'gff': 'genomic.gff.gz'}
        items = plan_downloads(records, wanted, 'out')

        self.assertEqual(len(items), 6)
        keys = [(item.assembly_name, item.file_type) for item in items]
        self.assertEqual(keys, [
            ('A1', 'fasta'), ('A1', 'gff'),
            ('B2', 'fasta'), ('B2', 'gff'),
            ('C3', 'fasta'), ('C3', 'gff'),
        ])
        self.assertEqual(len(set(keys)), 6)
        self.assertEqual(items[5].source, 'rsync://x/w/C3/C3_genomic.gff.gz')

    def test_no_records(self):
        self.assertEqual(plan_downloads([], {'fasta': 'genomic.fna.gz'}, 'out'), [])


if __name__ == '__main__':
    unittest.main()
