"""
Transfer Executor - Downloads planned files over HTTPS or rsync.

Each file is written to ``<destination>.part`` and only renamed to its final
name once the transfer finished, so a file under its final name is always
complete. Items run on a bounded worker pool with per-item retries and every
outcome is recorded in the run manifest.
"""

import logging
import os
import subprocess
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Sequence, Tuple

import requests
from tqdm import tqdm

from config import (
    CHUNK_SIZE, DEFAULT_DELAY, DEFAULT_PARALLEL_DOWNLOADS, DEFAULT_PROTOCOL,
    DEFAULT_RETRIES, MANIFEST_FILENAME, MANIFEST_SAVE_INTERVAL, PARTIAL_SUFFIX, REQUEST_TIMEOUT,
    RSYNC_FLAGS
)
from download_planner import DownloadItem
from manifest import (
    STATUS_FAILED, STATUS_SUCCESS, completed_destinations, load_manifest,
    manifest_entry, save_manifest
)


class TransferError(Exception):
    """Raised when a download fails and the run was asked to stop on failure"""

    def __init__(self, item: DownloadItem, error: Optional[str]):
        super().__init__(f"Failed to download {item.source}: {error}")
        self.item = item
        self.error = error


def http_download(url: str, destination: str, timeout: int = REQUEST_TIMEOUT):
    """Stream a single file over HTTP(S) to ``destination``"""
    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with open(destination, 'wb') as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)


def rsync_transfer(url: str, destination: str, flags: Sequence[str] = RSYNC_FLAGS):
    """Copy a remote path with rsync; non-zero exit raises CalledProcessError"""
    cmd = ["rsync", *flags, url, destination]
    subprocess.run(cmd, check=True, capture_output=True, text=True)


TRANSFERS = {
    'https': http_download,
    'rsync': rsync_transfer,
}


def _describe_error(error: Exception) -> str:
    if isinstance(error, subprocess.CalledProcessError) and error.stderr:
        return f"{error} ({error.stderr.strip()})"
    return str(error)


def _remove_partial(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def transfer_item(item: DownloadItem, protocol: str = DEFAULT_PROTOCOL,
                  retries: int = DEFAULT_RETRIES, delay: float = DEFAULT_DELAY) -> Tuple[bool, Optional[str]]:
    """Transfer one item with retries, returning (success, last error)"""
    transfer = TRANSFERS[protocol]
    partial = item.destination + PARTIAL_SUFFIX
    last_error = None

    for attempt in range(retries + 1):
        try:
            transfer(item.source, partial)
            os.replace(partial, item.destination)
            logging.debug(f"Downloaded {item.source} -> {item.destination}")
            return True, None
        except (requests.RequestException, subprocess.CalledProcessError, OSError) as e:
            last_error = _describe_error(e)
            logging.warning(f"Attempt {attempt + 1} failed for {item.source}: {last_error}")
            _remove_partial(partial)
            if attempt < retries:
                sleep_time = delay * (2 ** attempt)
                logging.info(f"Retrying in {sleep_time:.2f} seconds...")
                time.sleep(sleep_time)  # Exponential backoff

    logging.error(f"Failed to download {item.source} after {retries + 1} attempts")
    return False, last_error


def execute_plan(items: List[DownloadItem], dest_dir: str, protocol: str = DEFAULT_PROTOCOL,
                 max_workers: int = DEFAULT_PARALLEL_DOWNLOADS, retries: int = DEFAULT_RETRIES,
                 delay: float = DEFAULT_DELAY, resume: bool = False, fail_fast: bool = False,
                 manifest_path: Optional[str] = None) -> Dict[str, int]:
    """Download every planned item into ``dest_dir``.

    Returns counts of successful, failed and skipped (already complete) items.
    At most ``max_workers`` transfers are submitted at a time, so stopping the
    run never leaves queued work behind. With ``fail_fast`` the first failure
    stops new submissions, in-flight transfers finish and are recorded, and a
    TransferError is raised. An interrupt waits for in-flight transfers,
    records them, saves the manifest and re-raises.
    """
    if protocol not in TRANSFERS:
        raise ValueError(f"Unknown transfer protocol: {protocol}")

    os.makedirs(dest_dir, exist_ok=True)
    manifest_path = manifest_path or os.path.join(dest_dir, MANIFEST_FILENAME)

    entries = load_manifest(manifest_path) if resume else []
    done = completed_destinations(entries) if resume else set()

    stats = {'success': 0, 'failed': 0, 'skipped': 0}
    pending = []
    for item in items:
        if item.destination in done:
            stats['skipped'] += 1
        else:
            pending.append(item)

    if stats['skipped']:
        logging.info(f"Skipping {stats['skipped']} files already downloaded")

    logging.info(f"Downloading {len(pending)} files with {max_workers} workers via {protocol}...")
    start_time = time.time()
    first_failure = None

    queue = iter(pending)
    in_flight = {}
    unsaved = 0

    executor = ThreadPoolExecutor(max_workers=max_workers)
    pbar = tqdm(total=len(items), initial=stats['skipped'], desc="Downloading", unit="file")

    def submit_next() -> bool:
        item = next(queue, None)
        if item is None:
            return False
        in_flight[executor.submit(transfer_item, item, protocol, retries, delay)] = item
        return True

    def record(item, success, error):
        nonlocal unsaved
        if success:
            stats['success'] += 1
            entries.append(manifest_entry(item, STATUS_SUCCESS))
            pbar.update(1)
        else:
            stats['failed'] += 1
            entries.append(manifest_entry(item, STATUS_FAILED, error))
        unsaved += 1
        if unsaved >= MANIFEST_SAVE_INTERVAL:
            save_manifest(entries, manifest_path)
            unsaved = 0

    try:
        while len(in_flight) < max_workers and submit_next():
            pass

        while in_flight:
            finished, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in finished:
                item = in_flight.pop(future)
                success, error = future.result()
                record(item, success, error)
                if not success and fail_fast and first_failure is None:
                    first_failure = (item, error)

            if first_failure is None:
                while len(in_flight) < max_workers and submit_next():
                    pass
    except BaseException:
        # Nothing is queued beyond in_flight; let running transfers land
        executor.shutdown(wait=True)
        for future, item in in_flight.items():
            if future.exception() is None:
                record(item, *future.result())
        raise
    finally:
        executor.shutdown(wait=True)
        pbar.close()
        save_manifest(entries, manifest_path)

    total_time = time.time() - start_time
    logging.info(f"Transfers finished in {total_time:.2f} seconds")
    logging.info(f"Success: {stats['success']}, failed: {stats['failed']}, skipped: {stats['skipped']}")
    logging.info(f"Manifest saved to {manifest_path}")

    if first_failure:
        raise TransferError(*first_failure)

    return stats
