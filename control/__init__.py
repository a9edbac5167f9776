"""
HTTP control surface for the timeline batch downloader.

The Flask app (control.app.create_app) starts and stops runs as main.py
subprocesses and exposes the stored preferences.
"""
