"""Capture of document navigations into managed, named downloads."""

from download.CaptureSlot import CaptureSlot, PendingDownloadMeta
from download.DownloadInterceptor import DownloadInterceptor
from download.ManagedDownloader import ManagedDownloader

__all__ = ["CaptureSlot", "PendingDownloadMeta", "DownloadInterceptor", "ManagedDownloader"]
