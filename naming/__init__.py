"""Download file naming."""

from naming.FilenameBuilder import build_download_name, expand_template

__all__ = ["build_download_name", "expand_template"]
