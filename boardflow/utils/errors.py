"""Error types shared by the REST client, the git client and the operations."""


class BoardflowError(Exception):
    """Base class for all boardflow errors."""


class ContextMissingError(BoardflowError):
    """Raised (or carried as an empty-result reason) when required context is unset."""

    def __init__(self, missing):
        """Initialize the error.

        Args:
            missing (list): Names of the configuration keys that are not set
        """
        self.missing = list(missing)
        super().__init__(f"Missing configuration: {', '.join(self.missing)}")


class TransportError(BoardflowError):
    """A remote API call failed."""

    def __init__(self, method, url, message, status_code=None):
        self.method = method
        self.url = url
        self.status_code = status_code
        detail = f" (HTTP {status_code})" if status_code else ""
        super().__init__(f"{method} {url} failed{detail}: {message}")


class VersionControlStepError(BoardflowError):
    """A git command exited with a failure."""

    def __init__(self, command, stderr):
        """Initialize the error.

        Args:
            command (list): The git argv that failed
            stderr (str): The tool's error output
        """
        self.command = list(command)
        self.stderr = (stderr or "").strip()
        super().__init__(self.stderr or f"{' '.join(self.command)} failed")


class DecodeError(BoardflowError):
    """A branch link did not match the vstfs:///Git/Ref/ structure."""

    def __init__(self, link, reason):
        self.link = link
        super().__init__(f"Cannot decode branch link {link!r}: {reason}")
