"""
Unit tests for utils.download_with_progress.
"""

import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import requests

from utils.Args import Args
from utils.Logger import Logger
from utils.download_with_progress import cookies_to_dict, download_via_url


class TestDownloadViaUrl(unittest.TestCase):
    """Test download_via_url with a mocked requests session."""

    def setUp(self) -> None:
        self._original_argv = sys.argv.copy()
        sys.argv = ["test", "noop"]
        Args.initialize()
        Logger.initialize(log_level="WARNING")
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self) -> None:
        sys.argv = self._original_argv
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _session(self, chunks=(b"%PDF-1.4 ", b"body"), headers=None) -> MagicMock:
        resp = MagicMock()
        resp.headers = headers or {"Content-Length": str(sum(len(c) for c in chunks))}
        resp.iter_content.return_value = list(chunks)
        session = MagicMock()
        session.get.return_value = resp
        return session

    def test_writes_file_with_cookies(self) -> None:
        session = self._session()
        dest = self.temp_dir / "sub" / "a.pdf"
        written, ok = download_via_url(
            "https://example.com/doc", dest, cookies=[{"name": "sid", "value": "abc"}], session=session
        )
        self.assertTrue(ok)
        self.assertEqual(written, 13)
        self.assertEqual(dest.read_bytes(), b"%PDF-1.4 body")
        kwargs = session.get.call_args.kwargs
        self.assertEqual(kwargs["cookies"], {"sid": "abc"})
        self.assertTrue(kwargs["stream"])

    def test_timeout_is_raised(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.Timeout("slow")
        with self.assertRaises(requests.Timeout):
            download_via_url("https://example.com/doc", self.temp_dir / "a.pdf", session=session)

    def test_connection_error_returns_failure(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        self.assertEqual(
            download_via_url("https://example.com/doc", self.temp_dir / "a.pdf", session=session), (0, False)
        )

    def test_http_error_is_raised(self) -> None:
        session = self._session()
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("403")
        with self.assertRaises(requests.HTTPError):
            download_via_url("https://example.com/doc", self.temp_dir / "a.pdf", session=session)

    def test_write_failure_removes_partial_file(self) -> None:
        session = self._session()
        session.get.return_value.iter_content.side_effect = requests.ConnectionError("reset")
        dest = self.temp_dir / "a.pdf"
        written, ok = download_via_url("https://example.com/doc", dest, session=session)
        self.assertFalse(ok)
        self.assertFalse(dest.exists())

    def test_cookies_to_dict_accepts_objects(self) -> None:
        cookie = MagicMock()
        cookie.name, cookie.value = "a", "1"
        self.assertEqual(cookies_to_dict([cookie]), {"a": "1"})
        self.assertEqual(cookies_to_dict({"b": "2"}), {"b": "2"})
        self.assertEqual(cookies_to_dict(None), {})


if __name__ == "__main__":
    unittest.main()
