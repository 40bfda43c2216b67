"""
Run manifest - per-item download outcomes, used to resume interrupted runs
"""

import json
import logging
import os
import time
from typing import Any, Dict, Iterable, List, Optional

from download_planner import DownloadItem

STATUS_SUCCESS = 'success'
STATUS_FAILED = 'failed'


def manifest_entry(item: DownloadItem, status: str, error: Optional[str] = None) -> Dict[str, Any]:
    return {
        'assembly_name': item.assembly_name,
        'file_type': item.file_type,
        'source': item.source,
        'destination': item.destination,
        'status': status,
        'error': error,
        'timestamp': time.strftime('%Y-%m-%d %H:%M:%S'),
    }


def load_manifest(path: str) -> List[Dict[str, Any]]:
    """Load manifest entries, or an empty list if there is no manifest yet"""
    if not os.path.exists(path):
        return []
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_manifest(entries: List[Dict[str, Any]], path: str):
    """Write manifest entries as JSON"""
    tmp_path = path + '.tmp'
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(entries, f, indent=2, ensure_ascii=False)
    os.replace(tmp_path, path)


def completed_destinations(entries: Iterable[Dict[str, Any]]) -> set:
    """Destinations whose latest recorded outcome is a success and still exist on disk"""
    latest = {}
    for entry in entries:
        latest[entry['destination']] = entry['status']

    completed = set()
    for destination, status in latest.items():
        if status == STATUS_SUCCESS and os.path.exists(destination):
            completed.add(destination)
        elif status == STATUS_SUCCESS:
            logging.debug(f"Manifest lists {destination} as done but the file is missing")
    return completed
