"""
Command line arguments and configuration with singleton pattern.

Provides a centralized configuration accessible via direct attribute access.
Supports both command line arguments and config file values.

Config File Format:
    JSON format with simple key-value pairs.

    Example config.json:
    {
        "log_level": "DEBUG",
        "download_dir": "C:/Users/me/Documents/Broker",
        "slow_mode": false
    }

Example usage:
    from utils.Args import Args

    Args.initialize()

    download_dir = Args.download_dir  # From --download-dir, config file, or defaults

Note: Priority order (highest to lowest):
    1. Command line arguments (from Typer)
    2. Config file values
    3. Default values (from defaults dict)
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer


class ArgsMeta(type):
    """Metaclass to provide direct attribute access to config values."""

    def __getattr__(cls, name: str):
        """Provide attribute access to config values."""
        if not cls._initialized:
            raise RuntimeError("Args has not been initialized. Call Args.initialize() first.")

        if name in cls._config:
            return cls._config[name]

        raise AttributeError(f"Config item '{name}' not found")


class Args(metaclass=ArgsMeta):
    """Args class providing direct attribute access to configuration."""

    # Default values (lowest priority)
    _defaults: Dict[str, Any] = {
        "config_file": None,  # Set from --config when provided
        "log_level": "INFO",
        "log_color": False,
        "db_path": "batch_downloader.db",
        "storage_implementation": "StorageSQLLite",
        "download_dir": "./downloads",
        "start_url": "https://app.traderepublic.com/profile/transactions",
        # Range bounds; None = last-used value from preferences, then open bound
        "start": None,
        "end": None,
        # Per-run overrides of stored preferences; None = use stored value
        "filename_template": None,
        "date_format": None,
        "use_custom_names": None,
        "lang": None,
        "auto_load_more": True,
        "max_load_more": 500,  # Safety ceiling for incremental list loading
        "slow_mode": True,
        "lock_tab": True,
        # Browser
        "headless": False,
        "cdp_url": None,  # e.g. http://127.0.0.1:9222 to attach to a running Chrome
        "user_data_dir": "./browser_profile",
        "login_timeout_s": 300,
        # Capture / managed download
        "download_timeout_s": 60,
        "capture_timeout_s": 10.0,
        "popup_grace_s": 1.5,
        # Control surface
        "control_host": "127.0.0.1",
        "control_port": 5000,
        "stop_file": None,  # When set (e.g. via env TBD_STOP_FILE), the run checks this path before each item
        "status_file": None,  # When set (e.g. via env TBD_STATUS_FILE), status JSON is written on every transition
    }

    _config: Dict[str, Any] = {}
    _initialized: bool = False
    _app: Optional[typer.Typer] = None
    _parsed_args: Dict[str, Any] = {}

    @classmethod
    def initialize(cls, config_file: Optional[Path] = None) -> None:
        """
        Initialize configuration from defaults, config file, and command line args.

        Args:
            config_file: Optional path to config file. If None, uses --config from command line
                or ./config.json when present.
        """
        if cls._initialized:
            return

        cls._config = dict(cls._defaults)

        parsed_args = cls._parse_command_line()

        config_path = config_file or parsed_args.get("config")
        if config_path is None:
            config_path = "./config.json"

        if config_path:
            if not isinstance(config_path, Path):
                config_path = Path(config_path)
            if config_path.exists():
                cls._load_config_file(config_path)
            else:
                print(f"Warning: Config file '{config_path}' not found. Using defaults and command line arguments only.",
                      file=sys.stderr)

        cls._apply_command_line_args(parsed_args)

        if "config" in cls._config and cls._config["config"] is not None:
            cls._config["config_file"] = str(cls._config["config"])

        # Set by the control API when it spawns a run
        if os.environ.get("TBD_STOP_FILE"):
            cls._config["stop_file"] = os.environ["TBD_STOP_FILE"]
        if os.environ.get("TBD_STATUS_FILE"):
            cls._config["status_file"] = os.environ["TBD_STATUS_FILE"]

        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Forget the parsed configuration (for tests)."""
        cls._config = {}
        cls._parsed_args = {}
        cls._initialized = False

    @classmethod
    def _parse_command_line(cls) -> Dict[str, Any]:
        """
        Parse command line arguments using Typer.

        Returns:
            Dictionary of parsed command line arguments
        """
        parsed_values: Dict[str, Any] = {}

        def callback(
            ctx: typer.Context,
            module: str = typer.Argument(..., help="Module to run: noop, timeline, timeline_index, control"),
            config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to configuration file (JSON format). Default: ./config.json"),
            log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Set the logging level", case_sensitive=False),
            start: Optional[str] = typer.Option(None, "--start", "-s", help="Range start: a date (15.03.2024, 15/03, 2024-03-15), 'start'/'anfang', 'today'/'heute'; an index for timeline_index"),
            end: Optional[str] = typer.Option(None, "--end", "-e", help="Range end: same forms as --start; 'end'/'ende' for the open bound"),
            template: Optional[str] = typer.Option(None, "--template", "-t", help="Filename template, e.g. {date}_{title}_{subtitle}_{doc}"),
            date_format: Optional[str] = typer.Option(None, "--date-format", help="Date format tokens YYYY YY MM DD hh mm"),
            original_names: bool = typer.Option(False, "--original-names", help="Keep the server's file names instead of the template"),
            lang: Optional[str] = typer.Option(None, "--lang", help="Status language: de or en"),
            download_dir: Optional[Path] = typer.Option(None, "--download-dir", "-o", help="Destination folder for downloaded documents"),
            db_path: Optional[Path] = typer.Option(None, "--db-path", help="Path to SQLite preferences database"),
            fast: bool = typer.Option(False, "--fast", help="Use the fast timing preset"),
            no_auto_load: bool = typer.Option(False, "--no-auto-load", help="Do not load further list entries before the run"),
            no_lock_tab: bool = typer.Option(False, "--no-lock-tab", help="Do not re-assert the transactions/activities tab before each item"),
            headless: bool = typer.Option(False, "--headless", help="Run the browser headless (requires an existing logged-in profile)"),
            cdp_url: Optional[str] = typer.Option(None, "--cdp-url", help="Attach to a running Chrome over CDP instead of launching one"),
            log_color: bool = typer.Option(False, "--log-color", help="Color the log severity in terminal. Only applies when stdout is a TTY."),
        ) -> None:
            """Callback to capture Typer parsed values."""
            parsed_values["module"] = module
            if config is not None:
                parsed_values["config"] = config
            if log_level is not None:
                parsed_values["log_level"] = log_level.upper()
            if start is not None:
                parsed_values["start"] = start
            if end is not None:
                parsed_values["end"] = end
            if template is not None:
                parsed_values["filename_template"] = template
            if date_format is not None:
                parsed_values["date_format"] = date_format
            if original_names:
                parsed_values["use_custom_names"] = False
            if lang is not None:
                parsed_values["lang"] = lang.lower()
            if download_dir is not None:
                parsed_values["download_dir"] = download_dir
            if db_path is not None:
                parsed_values["db_path"] = db_path
            if fast:
                parsed_values["slow_mode"] = False
            if no_auto_load:
                parsed_values["auto_load_more"] = False
            if no_lock_tab:
                parsed_values["lock_tab"] = False
            if headless:
                parsed_values["headless"] = True
            if cdp_url is not None:
                parsed_values["cdp_url"] = cdp_url
            if log_color:
                parsed_values["log_color"] = True

        # Single command so the positional module is not treated as a subcommand
        app = typer.Typer(help="Timeline batch downloader - fetch and rename documents from a broker timeline")
        app.command()(callback)

        try:
            app(sys.argv[1:], standalone_mode=False)
        except SystemExit:
            raise

        # --help: callback never ran
        if "module" not in parsed_values:
            sys.exit(0)

        return parsed_values

    @classmethod
    def _load_config_file(cls, config_path: Path) -> None:
        """
        Load configuration from JSON file and merge into config.

        Args:
            config_path: Path to the JSON config file
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_file_data = json.load(f)
                cls._config.update(config_file_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file '{config_path}': {e}")
        except OSError as e:
            raise IOError(f"Error reading config file '{config_path}': {e}")

    @classmethod
    def _apply_command_line_args(cls, parsed_args: Dict[str, Any]) -> None:
        """Apply command line values over config file values and defaults."""
        cls._parsed_args = parsed_args
        for key, value in parsed_args.items():
            if value is not None:
                cls._config[key] = value

    @classmethod
    def get_args(cls) -> Dict[str, Any]:
        """Return the command line arguments that were provided."""
        if not cls._initialized:
            raise RuntimeError("Args has not been initialized. Call Args.initialize() first.")
        return cls._parsed_args.copy()

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Return the full configuration dictionary."""
        if not cls._initialized:
            raise RuntimeError("Args has not been initialized. Call Args.initialize() first.")
        return cls._config.copy()
