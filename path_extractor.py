"""
Path Extractor - Pulls assembly names and remote base paths out of
Entrez document summaries
"""

import logging
import xml.etree.ElementTree as ET
from typing import Iterable, List, NamedTuple, Optional, Tuple

from config import DEFAULT_PATH_SOURCE, PATH_FIELDS


class AssemblyRecord(NamedTuple):
    name: str
    base_path: str
    accession: Optional[str] = None
    uid: Optional[str] = None


def strip_trailing_separators(path: str) -> str:
    """Remove any trailing '/' from a remote directory path"""
    return path.rstrip('/')


def rewrite_scheme(path: str, old: str, new: str) -> str:
    """Replace a literal leading scheme prefix, leaving the rest untouched"""
    if old and path.startswith(old):
        return new + path[len(old):]
    return path


def _summary_field(summary: ET.Element, name: str) -> Optional[str]:
    """Read a field from a DocumentSummary node or a legacy DocSum node"""
    elem = summary.find(name)
    if elem is None:
        elem = summary.find(f"Item[@Name='{name}']")
    if elem is None or elem.text is None:
        return None
    return elem.text.strip() or None


def _summary_nodes(root: ET.Element) -> List[ET.Element]:
    nodes = root.findall('.//DocumentSummary')
    if not nodes:
        nodes = root.findall('.//DocSum')
    return nodes


def parse_assembly_summaries(xml_text: str, path_field: str = PATH_FIELDS[DEFAULT_PATH_SOURCE],
                             scheme: Optional[Tuple[str, str]] = None) -> List[AssemblyRecord]:
    """Parse assembly records from an ESummary XML document.

    Name and path are read from the same summary node, so records can never
    be mispaired. Summaries without a remote path (e.g. suppressed or
    RefSeq-less assemblies) are skipped. ``scheme`` is an optional
    ``(old, new)`` prefix pair applied to every base path.
    """
    root = ET.fromstring(xml_text)

    error = root.findtext('.//ERROR')
    if error:
        logging.warning(f"ESummary reported an error: {error}")

    records = []
    for summary in _summary_nodes(root):
        name = _summary_field(summary, 'AssemblyName')
        path = _summary_field(summary, path_field)
        accession = _summary_field(summary, 'AssemblyAccession')
        uid = summary.get('uid') or _summary_field(summary, 'Id')

        if not name or not path:
            logging.warning(f"Skipping assembly {accession or uid or '?'}: missing name or {path_field}")
            continue

        base_path = strip_trailing_separators(path)
        if scheme:
            base_path = rewrite_scheme(base_path, *scheme)

        records.append(AssemblyRecord(name, base_path, accession, uid))

    return records


def extract_assemblies(xml_documents: Iterable[str], path_field: str = PATH_FIELDS[DEFAULT_PATH_SOURCE],
                       scheme: Optional[Tuple[str, str]] = None) -> List[AssemblyRecord]:
    """Extract assembly records from a sequence of ESummary batches"""
    records = []
    for xml_text in xml_documents:
        records.extend(parse_assembly_summaries(xml_text, path_field, scheme))
    logging.info(f"Extracted {len(records)} assembly records")
    return records
