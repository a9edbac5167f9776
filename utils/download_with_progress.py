"""
Download a URL to a file with the browser's cookies and progress logging.

Used for managed saves: the document URL is captured from the page, then
streamed with requests using the cookies of the logged-in browser context.
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import requests

from utils.file_utils import format_file_size
from utils.Logger import Logger


def cookies_to_dict(cookies: Optional[Union[List[Any], Dict[str, str]]]) -> Dict[str, str]:
    """Convert Playwright-style cookies (list of dicts or objects with name/value) to a requests dict."""
    if not cookies:
        return {}
    if isinstance(cookies, dict):
        return cookies
    out: Dict[str, str] = {}
    for c in cookies:
        name = c.get("name") if isinstance(c, dict) else getattr(c, "name", None)
        value = c.get("value") if isinstance(c, dict) else getattr(c, "value", None)
        if name is not None and value is not None:
            out[str(name)] = str(value)
    return out


def download_via_url(
    url: str,
    destination_path: Path,
    cookies: Optional[Union[List[Any], Dict[str, str]]] = None,
    headers: Optional[Dict[str, str]] = None,
    progress_interval_mb: float = 5.0,
    progress_callback: Optional[Callable[[int, Optional[int]], None]] = None,
    timeout_sec: Optional[float] = None,
    session: Optional[requests.Session] = None,
) -> Tuple[int, bool]:
    """
    Stream url to destination_path.

    A partially written file is removed when the transfer fails.

    Args:
        url: Download URL.
        destination_path: Full path for the output file (overwritten).
        cookies: Cookies for the request (e.g. from context.cookies()).
        headers: Optional extra headers (User-Agent, Referer).
        progress_interval_mb: Log/callback every N MB (0 = only at the end).
        progress_callback: Optional callback(bytes_so_far, total_or_none).
        timeout_sec: Connect and read timeout; None = 30 s connect, 300 s read.
        session: Optional requests.Session (uses requests.get if None).

    Returns:
        (bytes_written, success).

    Raises:
        requests.Timeout: The server did not answer in time.
        requests.HTTPError: The server answered with an error status.
    """
    dest = Path(destination_path)
    dest.parent.mkdir(parents=True, exist_ok=True)

    get = (session or requests).get
    timeout_val = (timeout_sec or 30, timeout_sec or 300)
    try:
        resp = get(
            url,
            stream=True,
            cookies=cookies_to_dict(cookies),
            headers=headers or None,
            timeout=timeout_val,
        )
        resp.raise_for_status()
    except (requests.Timeout, requests.HTTPError):
        raise
    except requests.RequestException as e:
        Logger.error("Download request failed: %s", e)
        return (0, False)

    total: Optional[int] = None
    if "Content-Length" in resp.headers:
        try:
            total = int(resp.headers["Content-Length"])
        except ValueError:
            pass

    written = 0
    last_log_mb = 0.0
    start_time = time.perf_counter()
    try:
        with open(dest, "wb") as f:
            for chunk in resp.iter_content(chunk_size=256 * 1024):
                if not chunk:
                    continue
                f.write(chunk)
                written += len(chunk)
                mb = written / (1024 * 1024)
                if progress_interval_mb > 0 and (mb - last_log_mb) >= progress_interval_mb:
                    last_log_mb = mb
                    if progress_callback:
                        progress_callback(written, total)
                    else:
                        Logger.debug("Download progress: %s of %s", format_file_size(written),
                                     format_file_size(total) if total is not None else "?")
    except requests.Timeout:
        dest.unlink(missing_ok=True)
        raise
    except (OSError, requests.RequestException) as e:
        Logger.error("Download of %s failed: %s", dest.name, e)
        dest.unlink(missing_ok=True)
        return (written, False)

    elapsed = time.perf_counter() - start_time
    Logger.info("Saved %s (%s in %.1f s)", dest.name, format_file_size(written), elapsed)
    return (written, True)
