import os
from dotenv import load_dotenv

from boardflow.models.query import Query


class Config:
    def __init__(self):
        """Initialize configuration with default values."""
        # Connection context
        self.org_url = None
        self.project = None
        self.repo = None
        self.user = None
        self.pat = None

        # General
        self.debug = False
        self.log_file = None

        # Workspace
        self.workspace = os.getcwd()
        self.integration_branch = "master"
        self.remote = "origin"
        self.branch_prefix = ""

        # Work item states written by the lifecycle sequences
        self.active_state = "Active"
        self.resolved_state = "Resolved"

        # Saved queries shown at the top of the tree
        self.queries = []

        # API settings
        self.api_version = "7.0"
        self.request_timeout = 60

    @classmethod
    def from_args(cls, args, config=None):
        """Apply command line arguments on top of a configuration.

        Args:
            args: Parsed command line arguments
            config (Config, optional): Configuration to update (a new one if omitted)
        """
        config = config or cls()

        if getattr(args, 'org_url', None):
            config.org_url = args.org_url.rstrip('/')
        if getattr(args, 'project', None):
            config.project = args.project
        if getattr(args, 'repo', None):
            config.repo = args.repo
        if getattr(args, 'workspace', None):
            config.workspace = args.workspace
        if getattr(args, 'debug', False):
            config.debug = True

        return config

    @classmethod
    def from_env(cls, env_file='.env'):
        """Create configuration from environment variables.

        Args:
            env_file (str): Path to environment file (default: '.env')
        """
        load_dotenv(env_file)

        config = cls()
        org_url = os.getenv('BOARDFLOW_ORG_URL')
        config.org_url = org_url.rstrip('/') if org_url else None
        config.project = os.getenv('BOARDFLOW_PROJECT')
        config.repo = os.getenv('BOARDFLOW_REPO')
        config.user = os.getenv('BOARDFLOW_USER')
        config.pat = os.getenv('BOARDFLOW_PAT')
        config.debug = os.getenv('BOARDFLOW_DEBUG', '').lower() == 'true'
        config.log_file = os.getenv('BOARDFLOW_LOG_FILE')
        config.branch_prefix = os.getenv('BOARDFLOW_BRANCH_PREFIX', '')
        config.queries = parse_queries(os.getenv('BOARDFLOW_QUERIES', ''))

        # Optional environment overrides
        if os.getenv('BOARDFLOW_WORKSPACE'):
            config.workspace = os.getenv('BOARDFLOW_WORKSPACE')
        if os.getenv('BOARDFLOW_INTEGRATION_BRANCH'):
            config.integration_branch = os.getenv('BOARDFLOW_INTEGRATION_BRANCH')
        if os.getenv('BOARDFLOW_REMOTE'):
            config.remote = os.getenv('BOARDFLOW_REMOTE')
        if os.getenv('BOARDFLOW_ACTIVE_STATE'):
            config.active_state = os.getenv('BOARDFLOW_ACTIVE_STATE')
        if os.getenv('BOARDFLOW_RESOLVED_STATE'):
            config.resolved_state = os.getenv('BOARDFLOW_RESOLVED_STATE')
        if os.getenv('BOARDFLOW_API_VERSION'):
            config.api_version = os.getenv('BOARDFLOW_API_VERSION')
        if os.getenv('BOARDFLOW_REQUEST_TIMEOUT'):
            config.request_timeout = int(os.getenv('BOARDFLOW_REQUEST_TIMEOUT'))

        return config

    def has_workspace(self):
        """Return True when the configured workspace folder exists."""
        return bool(self.workspace) and os.path.isdir(self.workspace)

    def missing_context(self, *keys):
        """List the context keys that are not configured.

        Args:
            *keys (str): Attribute names to check, e.g. 'org_url', 'project'

        Returns:
            list: The names from ``keys`` whose value is empty
        """
        return [key for key in keys if not getattr(self, key, None)]

    def validate(self):
        """Validate the connection settings.

        Returns:
            tuple: (bool, str) - (is_valid, error_message)
        """
        if not self.org_url:
            return False, "Organization URL is required"
        if not self.project:
            return False, "Project is required"
        if not self.pat:
            return False, "Personal access token is required"
        return True, None


def parse_queries(raw):
    """Parse ``Name=queryId;Other=queryId`` into Query objects.

    Entries without a query id are ignored.
    """
    queries = []
    for entry in raw.split(';'):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, query_id = entry.partition('=')
        if not sep:
            name, query_id = entry, entry
        name, query_id = name.strip(), query_id.strip()
        if query_id:
            queries.append(Query(query_id=query_id, name=name or query_id))
    return queries
