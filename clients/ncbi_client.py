#!/usr/bin/env python3
"""
NCBI Client - Handles Entrez ESearch/ESummary interactions for assemblies
"""

import logging
import time
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, NamedTuple, Optional

import requests

from config import (
    NCBI_EMAIL, NCBI_API_KEY, NCBI_TOOL, NCBI_SEARCH_URL, NCBI_SUMMARY_URL,
    DEFAULT_BATCH_SIZE, DEFAULT_DELAY, REQUEST_TIMEOUT
)


class SearchResult(NamedTuple):
    """Server-side Entrez history entry for a search"""
    database: str
    web_env: str
    query_key: str
    count: int


class NCBIClient:
    """Client for NCBI Entrez API interactions"""

    def __init__(self, email: str = NCBI_EMAIL, api_key: Optional[str] = NCBI_API_KEY,
                 delay: float = DEFAULT_DELAY, timeout: int = REQUEST_TIMEOUT):
        self.email = email
        self.api_key = api_key
        self.delay = delay
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': f'AssemblyFetcher/1.0 (mailto:{self.email})'
        })
        self.logger = logging.getLogger("NCBIClient")

    def search(self, database: str, term: str) -> Optional[SearchResult]:
        """Run an ESearch and keep the result set on the Entrez history server"""
        params = self._params({
            'db': database,
            'term': term,
            'usehistory': 'y',
            'retmax': 0,
            'retmode': 'xml',
        })

        response = self._make_request(NCBI_SEARCH_URL, params)
        if not response:
            return None

        try:
            root = ET.fromstring(response.text)
        except ET.ParseError as e:
            self.logger.error(f"Failed to parse ESearch response: {e}")
            return None

        error = root.findtext('ERROR')
        if error:
            self.logger.error(f"ESearch error: {error}")
            return None

        for warning in root.findall('.//WarningList/*'):
            if warning.text:
                self.logger.warning(f"ESearch {warning.tag}: {warning.text}")

        web_env = root.findtext('WebEnv')
        query_key = root.findtext('QueryKey')
        if not web_env or not query_key:
            self.logger.error("ESearch response is missing WebEnv/QueryKey")
            return None

        count = int(root.findtext('Count') or 0)
        self.logger.info(f"ESearch matched {count} records in {database}")
        return SearchResult(database, web_env, query_key, count)

    def fetch_summaries(self, search_result: SearchResult, max_results: Optional[int] = None,
                        batch_size: int = DEFAULT_BATCH_SIZE) -> Optional[List[str]]:
        """Retrieve ESummary XML documents for a search result, in batches"""
        total = search_result.count
        if max_results is not None:
            total = min(total, max_results)

        documents = []
        for retstart in range(0, total, batch_size):
            retmax = min(batch_size, total - retstart)
            params = self._params({
                'db': search_result.database,
                'WebEnv': search_result.web_env,
                'query_key': search_result.query_key,
                'retstart': retstart,
                'retmax': retmax,
                'retmode': 'xml',
            })

            self.logger.debug(f"Fetching summaries {retstart + 1}-{retstart + retmax} of {total}")
            response = self._make_request(NCBI_SUMMARY_URL, params)
            if not response:
                return None
            documents.append(response.text)

            if retstart + batch_size < total:
                time.sleep(self.delay)

        return documents

    def _params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(params, email=self.email, tool=NCBI_TOOL, api_key=self.api_key)
        # Remove None values
        return {k: v for k, v in params.items() if v is not None}

    def _make_request(self, url: str, params: dict) -> Optional[requests.Response]:
        """Make HTTP request with error handling"""
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            self.logger.debug(f"Request succeeded: {url} params={params}")
            return response
        except requests.RequestException as e:
            self.logger.error(f"Request failed: {e}")
            return None
