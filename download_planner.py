"""
Download Planner - Maps assembly records to concrete per-file downloads
"""

import os
from typing import Dict, Iterable, List, NamedTuple

from path_extractor import AssemblyRecord


class DownloadItem(NamedTuple):
    assembly_name: str
    file_type: str
    source: str
    destination: str


def last_path_segment(base_path: str) -> str:
    """Return everything after the final '/' of a path"""
    return base_path.rsplit('/', 1)[-1]


def remote_filename(base_path: str, suffix: str) -> str:
    """Filename NCBI uses for one file type inside an assembly directory"""
    return f"{last_path_segment(base_path)}_{suffix}"


def plan_downloads(records: Iterable[AssemblyRecord], wanted_types: Dict[str, str],
                   dest_dir: str) -> List[DownloadItem]:
    """Build one download item per (assembly, file type), in input order"""
    items = []
    for record in records:
        for file_type, suffix in wanted_types.items():
            filename = remote_filename(record.base_path, suffix)
            items.append(DownloadItem(
                assembly_name=record.name,
                file_type=file_type,
                source=f"{record.base_path}/{filename}",
                destination=os.path.join(dest_dir, filename),
            ))
    return items
