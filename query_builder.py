"""
Query Builder - Formulates Entrez search terms for the assembly database
"""

from typing import Iterable, List, Optional
from urllib.parse import parse_qs, urlparse

from config import DEFAULT_NAME_FIELD


def name_clause(name: str, field: str = DEFAULT_NAME_FIELD) -> str:
    """Wrap a single identifier as a quoted, field-qualified search clause"""
    # Embedded double quotes are not escaped
    return f'"{name}"[{field}]'


def build_query(term: Optional[str] = None, names: Optional[Iterable[str]] = None,
                field: str = DEFAULT_NAME_FIELD) -> str:
    """Build a search term from a literal query or a list of identifiers.

    A literal ``term`` is returned as-is. Otherwise every identifier in
    ``names`` becomes ``"<name>"[FIELD]`` and the clauses are OR-ed together
    in input order.
    """
    if term is not None:
        return term

    clauses = [name_clause(name, field) for name in (names or [])]
    if not clauses:
        raise ValueError("At least one identifier is required to build a query")

    return " OR ".join(clauses)


def read_names_file(path: str) -> List[str]:
    """Read identifiers from a file, one per line"""
    names = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            names.append(line)
    return names


def parse_search_url(url: str) -> Optional[str]:
    """Extract search query from NCBI URL"""
    parsed = urlparse(url)
    if 'ncbi.nlm.nih.gov' not in parsed.netloc:
        return None

    query_params = parse_qs(parsed.query)
    if 'term' in query_params:
        return ' '.join(query_params['term'])

    # Try to extract from path, e.g. /assembly/ASM584v2; a bare /assembly is a database page
    segments = [segment for segment in parsed.path.split('/') if segment]
    if len(segments) >= 2:
        return segments[-1].replace('+', ' ')

    return None
