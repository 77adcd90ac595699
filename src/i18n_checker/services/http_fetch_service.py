# src/i18n_checker/services/http_fetch_service.py
import logging
from typing import Dict, List, Mapping, Optional

import requests

from ..model import CheckerSettings, DocumentResource

logger = logging.getLogger(__name__)


class HttpFetchService:
    """
    Retrieves a document over HTTP(S) and wraps it as a DocumentResource.

    Request headers given to `fetch` (e.g. Accept-Language) are sent with the request
    and also recorded on the resource, so the checker can report what was asked for.
    Repeated response headers are kept as separate values.
    """

    def __init__(self, settings: Optional[CheckerSettings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or CheckerSettings()
        self._session = session

    def _get_session(self) -> requests.Session:
        """Initialises or returns the shared requests session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({'User-Agent': self.settings.user_agent})
        return self._session

    @staticmethod
    def _response_headers(response: requests.Response) -> Dict[str, List[str]]:
        raw_headers = getattr(response.raw, "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            return {name: list(raw_headers.getlist(name)) for name in raw_headers.keys()}
        return {name: [value] for name, value in response.headers.items()}

    def fetch(self, url: str, request_headers: Optional[Mapping[str, str]] = None) -> DocumentResource:
        """
        Fetches `url`, following redirects. The body is kept as raw bytes.

        Raises:
            requests.exceptions.RequestException: on connection errors, timeouts and 4xx/5xx responses.
        """
        request_headers = dict(request_headers or {})
        logger.info("Fetching %s", url)
        try:
            response = self._get_session().get(
                url, headers=request_headers, timeout=self.settings.request_timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("Failed to fetch %s: %s", url, e)
            raise

        headers = self._response_headers(response)
        lowered = {name.lower() for name in headers}
        for name, value in request_headers.items():
            if name.lower() not in lowered:
                headers[name] = [value]

        logger.debug("Fetched %s: HTTP %s, %d bytes", response.url, response.status_code, len(response.content))
        return DocumentResource(url=response.url, body=response.content, headers=headers)
