"""
Campsite Availability Sync - Browser Scraper Client
Delegates fetches to an external headless-browser Node.js process and parses
its stdout as one self-contained JSON document.
"""

import json
import os
import shutil
import subprocess
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from collector.fetcher import (
    AvailabilityFetcher, TransientFetchError, MalformedResponseError,
    filter_facilities, require_grid_units
)
from utils.config import (
    NODE_PATH, BROWSER_SCRAPER_SCRIPT, BROWSER_SCRAPER_TIMEOUT,
    MAX_RETRY_ATTEMPTS, RETRY_BACKOFF_MULTIPLIER, RETRY_BACKOFF_MAX
)
from utils.logger import setup_logger

logger = setup_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Resolved once per process by resolve_node_path()
_node_path: Optional[str] = None
_node_path_resolved = False


def resolve_node_path() -> Optional[str]:
    """
    Locate the Node.js executable.

    NODE_PATH wins when set; otherwise the first `node` on PATH. The result
    is cached for the life of the process.

    Returns:
        Absolute path to node, or None if not found
    """
    global _node_path, _node_path_resolved
    if not _node_path_resolved:
        _node_path = NODE_PATH or shutil.which('node')
        _node_path_resolved = True
    return _node_path


def resolve_script_path(script: str = BROWSER_SCRAPER_SCRIPT) -> Path:
    path = Path(script)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


class BrowserScraperClient(AvailabilityFetcher):
    """
    Fetcher backed by `node scrape-via-browser.js`.

    Commands:
        facilities <placeId>
        availability <placeId> <facilityId> <startDate> <nights>
    """

    channel = "browser"

    def __init__(
        self,
        node_path: Optional[str] = None,
        script_path: Optional[Union[str, Path]] = None,
        timeout: int = BROWSER_SCRAPER_TIMEOUT
    ):
        self.node_path = node_path or resolve_node_path()
        self.script_path = Path(script_path) if script_path else resolve_script_path()
        self.timeout = timeout

    @classmethod
    def is_available(cls) -> bool:
        """Check that node resolves and the scraper script exists."""
        return resolve_node_path() is not None and resolve_script_path().is_file()

    def fetch_park_facilities(
        self,
        park_number: str,
        facility_filter: Optional[Iterable[str]] = None
    ) -> List[Dict[str, str]]:
        data = self._run('facilities', str(park_number))
        facilities = filter_facilities(data, park_number, facility_filter)
        logger.info(f"Browser scraper returned {len(facilities)} facilities for park {park_number}")
        return facilities

    def fetch_facility_grid(
        self,
        park_number: str,
        facility_id: str,
        start_date: Union[date, str],
        nights: int = 1
    ) -> Dict[str, Any]:
        if isinstance(start_date, date):
            start_date = start_date.isoformat()

        data = self._run('availability', str(park_number), str(facility_id), start_date, str(nights))
        return require_grid_units(data, facility_id)

    @retry(
        stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF_MULTIPLIER, max=RETRY_BACKOFF_MAX),
        retry=retry_if_exception_type(TransientFetchError),
        reraise=True
    )
    def _run(self, *args: str) -> Any:
        """
        Run the scraper script and decode its JSON result.

        Args:
            *args: Command and positional arguments for the script

        Returns:
            Decoded JSON document

        Raises:
            TransientFetchError: On timeout, launch failure or non-zero exit
            MalformedResponseError: If no JSON is printed, it does not parse,
                or it carries an "error" key
        """
        if not self.node_path:
            raise TransientFetchError("Node.js executable not found")

        command = [self.node_path, str(self.script_path), *args]
        env = {key: value for key, value in os.environ.items() if key != 'DISPLAY'}

        logger.debug(f"Running browser scraper: {' '.join(args)}")

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
                check=False
            )
        except subprocess.TimeoutExpired as e:
            raise TransientFetchError(
                f"Browser scraper timed out after {self.timeout} seconds ({args[0]})"
            ) from e
        except OSError as e:
            raise TransientFetchError(f"Failed to start browser scraper: {e}") from e

        if completed.stderr:
            logger.debug(f"Browser scraper stderr: {completed.stderr[:3000]}")

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or '').strip()[:500]
            raise TransientFetchError(
                f"Browser scraper exited with code {completed.returncode}: {detail}"
            )

        return self._parse_output(completed.stdout, completed.stderr)

    @staticmethod
    def _parse_output(stdout: str, stderr: str = '') -> Any:
        json_line = _last_json_line(stdout)
        if json_line is None:
            output = (stderr or stdout or '').strip()[:500]
            raise MalformedResponseError(f"Browser scraper returned no JSON. Output: {output}")

        try:
            data = json.loads(json_line)
        except ValueError as e:
            raise MalformedResponseError(
                f"Failed to parse JSON from browser scraper: {e}. Output: {json_line[:500]}"
            ) from e

        if isinstance(data, dict) and 'error' in data:
            raise MalformedResponseError(f"Browser scraper error: {data['error']}")

        return data


def _last_json_line(output: str) -> Optional[str]:
    """Return the last non-empty line starting with '{' or '['."""
    for line in reversed((output or '').strip().splitlines()):
        line = line.strip()
        if line and line[0] in '{[':
            return line
    return None
