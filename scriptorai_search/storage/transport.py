"""httpx transport that serves a local copy of the site's static directory.

Lets the index document store read ``<static_dir>/texts_indices/*.json``
through the same httpx client code path it uses against the live site,
so a checkout of the site can be searched offline.
"""

from pathlib import Path

import httpx

from scriptorai_search.logging_config import get_logger
from scriptorai_search.storage.paths import get_index_document_path

logger = get_logger(__name__)

LOCAL_BASE_URL = "http://static.local"


class StaticDirTransport(httpx.BaseTransport):
    """Answer GET requests from files under a static directory.

    Missing files and paths that escape the directory answer 404, so the
    store's non-success handling applies unchanged.

    Attributes:
        static_dir: Root of the local static directory.

    Example:
        >>> client = httpx.Client(
        ...     transport=StaticDirTransport(Path("./static")), base_url=LOCAL_BASE_URL
        ... )
        >>> client.get("/texts_indices/CCAG_1.json").status_code
        200
    """

    def __init__(self, static_dir: Path) -> None:
        self.static_dir = static_dir

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if request.method != "GET":
            return httpx.Response(405, request=request)

        file_path = get_index_document_path(self.static_dir, request.url.path)
        if file_path is None or not file_path.is_file():
            logger.debug("No static file for %s", request.url.path)
            return httpx.Response(404, request=request)

        return httpx.Response(
            200,
            content=file_path.read_bytes(),
            headers={"Content-Type": "application/json"},
            request=request,
        )


def create_client(
    site_url: str,
    static_dir: str | Path | None = None,
    timeout: float = 30.0,
) -> httpx.Client:
    """Create the HTTP client used to fetch index documents.

    Args:
        site_url: Base URL of the site (ignored when static_dir is set).
        static_dir: Local static directory to read from instead.
        timeout: Request timeout in seconds.

    Returns:
        Configured httpx.Client. The caller owns and closes it.
    """
    if static_dir is not None:
        logger.info("Reading index documents from %s", static_dir)
        return httpx.Client(
            transport=StaticDirTransport(Path(static_dir).expanduser()),
            base_url=LOCAL_BASE_URL,
            timeout=timeout,
        )
    logger.info("Reading index documents from %s", site_url)
    return httpx.Client(base_url=site_url, timeout=timeout, follow_redirects=True)
