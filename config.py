# Configuration for NCBI Assembly Fetcher

import os

# NCBI Entrez API settings
NCBI_EMAIL = os.environ.get("NCBI_EMAIL", "assembly-fetcher@example.org")
NCBI_API_KEY = os.environ.get("NCBI_API_KEY") or None
NCBI_TOOL = "assembly_fetcher"

# URLs
NCBI_BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/"
NCBI_SEARCH_URL = NCBI_BASE_URL + "esearch.fcgi"
NCBI_SUMMARY_URL = NCBI_BASE_URL + "esummary.fcgi"

# Search defaults
DEFAULT_DATABASE = "assembly"
DEFAULT_NAME_FIELD = "NAME"
DEFAULT_BATCH_SIZE = 500
REQUEST_TIMEOUT = 30

# Summary field holding the remote directory of each assembly
PATH_FIELDS = {
    'genbank': 'FtpPath_GenBank',
    'refseq': 'FtpPath_RefSeq',
}
DEFAULT_PATH_SOURCE = 'genbank'

# Wanted file types -> filename suffix used in the NCBI genomes/all tree
FILE_TYPE_SUFFIXES = {
    'fasta': 'genomic.fna.gz',
    'genbank': 'genomic.gbff.gz',
    'gff': 'genomic.gff.gz',
    'gtf': 'genomic.gtf.gz',
    'protein': 'protein.faa.gz',
    'cds': 'cds_from_genomic.fna.gz',
    'rna': 'rna_from_genomic.fna.gz',
    'report': 'assembly_report.txt',
    'stats': 'assembly_stats.txt',
}
DEFAULT_FILE_TYPES = ['fasta']

# Transfer schemes: summaries carry ftp:// paths, rewritten per protocol
SOURCE_SCHEME = "ftp://"
PROTOCOL_SCHEMES = {
    'https': "https://",
    'rsync': "rsync://",
}
DEFAULT_PROTOCOL = 'https'
RSYNC_FLAGS = ["--copy-links", "--recursive", "--times", "--compress", "--quiet"]

# Download settings
DEFAULT_OUTPUT_DIR = "./output"
DEFAULT_RETRIES = 3
DEFAULT_DELAY = 0.5
DEFAULT_PARALLEL_DOWNLOADS = 4
MAX_PARALLEL_DOWNLOADS = 8
CHUNK_SIZE = 8192
PARTIAL_SUFFIX = ".part"

# Output files written next to the downloads
MANIFEST_FILENAME = "download_manifest.json"
MANIFEST_SAVE_INTERVAL = 25
PLAN_FILENAME = "download_plan.json"
INVENTORY_FILENAME = "assembly_inventory.tsv"
