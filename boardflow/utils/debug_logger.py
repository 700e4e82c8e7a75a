"""Debug log shared by the CLI, the REST client and the git client."""

import os
from datetime import datetime

MASK = '***'


class DebugLogger:
    """Append timestamped lines to a log file; echo them to the console in debug mode.

    Values registered as secrets (the personal access token) are masked in
    every line, so request parameters and error bodies can be logged as-is.
    """

    def __init__(self, log_file_path=None, console_debug=False, secrets=None):
        """Initialize the debug logger.

        Args:
            log_file_path (str, optional): Log file, appended to; console only when omitted
            console_debug (bool): Whether to also print to console
            secrets (list, optional): Values that must never be written out
        """
        self.log_file_path = log_file_path
        self.console_debug = console_debug
        self.secrets = [s for s in (secrets or []) if s]
        self.file_handle = None

        if log_file_path:
            try:
                log_dir = os.path.dirname(log_file_path)
                if log_dir:
                    os.makedirs(log_dir, exist_ok=True)
                self.file_handle = open(log_file_path, 'a', encoding='utf-8', buffering=1)
            except OSError as e:
                print(f"Warning: Could not open debug log file: {e}")

    def section(self, title):
        """Start a block of log lines for one command run."""
        self.log('=' * 60)
        self.log(f"{title} ({datetime.now().strftime('%Y-%m-%d %H:%M:%S')})")

    def log(self, message):
        """Write a message to the debug log.

        Args:
            message (str): Message to log
        """
        message = self.mask(str(message))
        timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]

        if self.file_handle:
            try:
                self.file_handle.write(f"[{timestamp}] {message}\n")
            except (OSError, ValueError) as e:
                print(f"Warning: Failed to write to debug log: {e}")

        if self.console_debug:
            print(message)

    def mask(self, text):
        for secret in self.secrets:
            text = text.replace(secret, MASK)
        return text

    def close(self):
        """Close the log file."""
        if self.file_handle:
            try:
                self.file_handle.close()
            except OSError as e:
                print(f"Warning: Failed to close debug log: {e}")
            self.file_handle = None

    def __del__(self):
        self.close()
