#!/usr/bin/env python3
"""
NCBI Assembly Fetcher - Search the NCBI Assembly database and download
assembly files (FASTA, GenBank, GFF, ...) over HTTPS or rsync
"""

import argparse
import csv
import json
import logging
import os
import sys
import xml.etree.ElementTree as ET
from typing import List, Optional

from clients.ncbi_client import NCBIClient
from config import (
    NCBI_EMAIL, NCBI_API_KEY, DEFAULT_DATABASE, DEFAULT_NAME_FIELD, DEFAULT_OUTPUT_DIR,
    DEFAULT_RETRIES, DEFAULT_DELAY, DEFAULT_PARALLEL_DOWNLOADS, MAX_PARALLEL_DOWNLOADS,
    DEFAULT_PATH_SOURCE, PATH_FIELDS, FILE_TYPE_SUFFIXES, DEFAULT_FILE_TYPES,
    DEFAULT_PROTOCOL, PROTOCOL_SCHEMES, SOURCE_SCHEME, MANIFEST_FILENAME, PLAN_FILENAME,
    INVENTORY_FILENAME
)
from download_planner import DownloadItem, plan_downloads
from inventory import build_inventory, save_inventory
from manifest import load_manifest
from path_extractor import AssemblyRecord, extract_assemblies
from query_builder import build_query, parse_search_url, read_names_file
from transfer import execute_plan


def save_records_to_json(records: List[AssemblyRecord], output_file: str):
    """Save assembly records to JSON format"""
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump([record._asdict() for record in records], f, indent=2, ensure_ascii=False)


def save_records_to_csv(records: List[AssemblyRecord], output_file: str):
    """Save assembly records to CSV format"""
    with open(output_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=AssemblyRecord._fields)
        writer.writeheader()
        writer.writerows(record._asdict() for record in records)


def save_plan(items: List[DownloadItem], output_file: str):
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump([item._asdict() for item in items], f, indent=2, ensure_ascii=False)


def resolve_query(args) -> Optional[str]:
    """Turn the query-related CLI arguments into a single search term"""
    if args.url is not None:
        return parse_search_url(args.url)
    if args.query is not None:
        return build_query(term=args.query)

    names = args.names if args.names else read_names_file(args.names_file)
    logging.info(f"Building query from {len(names)} assembly names")
    return build_query(names=names, field=args.name_field)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download genome assembly files from NCBI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Every complete Vibrio cholerae genome, FASTA and GFF, over HTTPS
  python assembly_fetcher.py --query "Vibrio cholerae[Organism] AND complete genome[filter]" --file_types fasta gff

  # Specific assemblies by name, transferred with rsync
  python assembly_fetcher.py --names ASM584v2 ASM886v2 --protocol rsync

  # Names listed in a file, RefSeq copies, resume an interrupted run
  python assembly_fetcher.py --names_file assemblies.txt --path_source refseq --resume

  # Only write the download plan
  python assembly_fetcher.py --query "Escherichia coli[Organism]" --max_results 20 --dry_run
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--query', help='Entrez search query')
    source.add_argument('--names', nargs='+', help='Assembly names to search for')
    source.add_argument('--names_file', help='File with one assembly name per line')
    source.add_argument('--url', help='NCBI search URL')

    parser.add_argument('--name_field', default=DEFAULT_NAME_FIELD,
                        help=f'Search field used for --names/--names_file (default: {DEFAULT_NAME_FIELD})')
    parser.add_argument('--database', default=DEFAULT_DATABASE,
                        help=f'Entrez database to search (default: {DEFAULT_DATABASE})')
    parser.add_argument('--path_source', choices=sorted(PATH_FIELDS), default=DEFAULT_PATH_SOURCE,
                        help=f'Which archive copy to download (default: {DEFAULT_PATH_SOURCE})')
    parser.add_argument('--file_types', nargs='+', choices=sorted(FILE_TYPE_SUFFIXES),
                        default=DEFAULT_FILE_TYPES,
                        help='File types to download (default: fasta)')
    parser.add_argument('--protocol', choices=sorted(PROTOCOL_SCHEMES), default=DEFAULT_PROTOCOL,
                        help=f'Transfer protocol (default: {DEFAULT_PROTOCOL})')
    parser.add_argument('--output_dir', default=DEFAULT_OUTPUT_DIR,
                        help=f'Output directory for downloaded files (default: {DEFAULT_OUTPUT_DIR})')
    parser.add_argument('--max_results', type=int,
                        help='Maximum number of assemblies to retrieve (default: all matches)')
    parser.add_argument('--parallel_downloads', type=int, default=DEFAULT_PARALLEL_DOWNLOADS,
                        help=f'Number of parallel download workers (default: {DEFAULT_PARALLEL_DOWNLOADS}, '
                             f'max: {MAX_PARALLEL_DOWNLOADS})')
    parser.add_argument('--retries', type=int, default=DEFAULT_RETRIES,
                        help='Number of retry attempts per file')
    parser.add_argument('--delay', type=float, default=DEFAULT_DELAY,
                        help='Base delay between retries and Entrez requests')
    parser.add_argument('--resume', action='store_true',
                        help='Skip files the previous run\'s manifest lists as downloaded')
    parser.add_argument('--fail_fast', action='store_true',
                        help='Stop at the first failed download')
    parser.add_argument('--dry_run', action='store_true',
                        help='Write the download plan without transferring anything')
    parser.add_argument('--metadata_format', choices=['json', 'csv'], default='json',
                        help='Format for assembly metadata output (default: json)')
    parser.add_argument('--inventory', action='store_true',
                        help='Write sequence statistics for downloaded FASTA files')
    parser.add_argument('--email', default=NCBI_EMAIL, help='Contact email sent to NCBI')
    parser.add_argument('--api_key', default=NCBI_API_KEY, help='NCBI API key')
    parser.add_argument('--log_level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')

    args = parser.parse_args(argv)

    for flag in ('query', 'url', 'names_file'):
        value = getattr(args, flag)
        if value is not None and not value.strip():
            parser.error(f"--{flag} must not be empty")
    if args.parallel_downloads < 1 or args.parallel_downloads > MAX_PARALLEL_DOWNLOADS:
        parser.error(f"--parallel_downloads must be between 1 and {MAX_PARALLEL_DOWNLOADS}")
    if args.retries < 0:
        parser.error("--retries must not be negative")
    if args.max_results is not None and args.max_results < 1:
        parser.error("--max_results must be positive")

    return args


def run(args: argparse.Namespace) -> int:
    """Run the search -> summary -> plan -> transfer pipeline, returning an exit status"""
    query = resolve_query(args)
    if not query:
        logging.error("Could not determine a search query")
        return 1

    logging.info(f"Searching {args.database} with query: {query}")
    client = NCBIClient(email=args.email, api_key=args.api_key, delay=args.delay)

    search_result = client.search(args.database, query)
    if search_result is None:
        logging.error("Search failed")
        return 1
    if search_result.count == 0:
        logging.warning("No assemblies found for the query")
        return 0

    documents = client.fetch_summaries(search_result, args.max_results)
    if documents is None:
        logging.error("Failed to retrieve assembly summaries")
        return 1

    scheme = (SOURCE_SCHEME, PROTOCOL_SCHEMES[args.protocol])
    try:
        records = extract_assemblies(documents, PATH_FIELDS[args.path_source], scheme)
    except ET.ParseError as e:
        logging.error(f"Failed to parse assembly summaries: {e}")
        return 1

    if not records:
        logging.warning(f"None of the {search_result.count} matches has a {args.path_source} path")
        return 0

    os.makedirs(args.output_dir, exist_ok=True)
    metadata_path = os.path.join(args.output_dir, f"assemblies.{args.metadata_format}")
    if args.metadata_format == 'json':
        save_records_to_json(records, metadata_path)
    else:
        save_records_to_csv(records, metadata_path)
    logging.info(f"Metadata saved to {metadata_path}")

    wanted_types = {file_type: FILE_TYPE_SUFFIXES[file_type] for file_type in args.file_types}
    items = plan_downloads(records, wanted_types, args.output_dir)
    logging.info(f"Planned {len(items)} downloads for {len(records)} assemblies")

    if args.dry_run:
        plan_path = os.path.join(args.output_dir, PLAN_FILENAME)
        save_plan(items, plan_path)
        logging.info(f"Dry run: download plan saved to {plan_path}")
        return 0

    manifest_path = os.path.join(args.output_dir, MANIFEST_FILENAME)
    stats = execute_plan(
        items, args.output_dir,
        protocol=args.protocol,
        max_workers=args.parallel_downloads,
        retries=args.retries,
        delay=args.delay,
        resume=args.resume,
        fail_fast=args.fail_fast,
        manifest_path=manifest_path,
    )

    if args.inventory:
        df = build_inventory(load_manifest(manifest_path))
        save_inventory(df, os.path.join(args.output_dir, INVENTORY_FILENAME))

    if stats['failed']:
        logging.warning(f"{stats['failed']} downloads failed, see {manifest_path}")
        return 1

    logging.info(f"Process completed. Downloaded {stats['success']} files to {args.output_dir}")
    return 0


def main():
    """Main CLI function"""
    args = parse_args()

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        status = run(args)
    except Exception as e:
        logging.error(f"Error: {e}")
        sys.exit(1)
    sys.exit(status)


if __name__ == '__main__':
    main()
