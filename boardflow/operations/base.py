class Operation:
    """Base class for all operations."""

    def __init__(self, config, boards_api=None, progress=None, debug_logger=None,
                 exception_reporter=None):
        """Initialize the operation.

        Args:
            config (Config): Configuration instance
            boards_api (BoardsAPI, optional): Project-scoped REST endpoints
            progress (ProgressTracker, optional): Progress tracker instance
            debug_logger (DebugLogger, optional): Debug logger instance
            exception_reporter (ExceptionReporter, optional): Collects skipped and failed work
        """
        self.config = config
        self.api = boards_api
        self.progress = progress
        self.logger = debug_logger
        self.reporter = exception_reporter

    def log(self, message):
        """Write to the debug log and, in debug mode, to the console."""
        if self.logger:
            self.logger.log(message)
        elif self.config.debug:
            print(message)

    def execute(self, *args, **kwargs):
        """Execute the operation.

        This method should be overridden by specific operations.
        """
        raise NotImplementedError("Operation must implement execute method")
