import base64


class AuthManager:
    def __init__(self, org_url, pat, debug=False):
        """Initialize the authentication manager.

        Args:
            org_url (str): The organization URL, e.g. https://dev.azure.com/contoso
            pat (str): Personal access token
            debug (bool, optional): Enable debug output. Defaults to False.
        """
        self.org_url = org_url
        self.pat = pat
        self.debug = debug
        self._auth_header = None

    def ensure_authenticated(self):
        """Ensure we have an authorization header value to send."""
        if not self.pat:
            raise ValueError("No personal access token configured")
        if self._auth_header is None:
            token = base64.b64encode(f":{self.pat}".encode('utf-8')).decode('ascii')
            self._auth_header = f"Basic {token}"
            if self.debug:
                print(f"Using personal access token for {self.org_url}")
        return self._auth_header

    def get_headers(self, content_type='application/json'):
        """Get headers with authentication for API requests."""
        return {
            'Authorization': self.ensure_authenticated(),
            'Content-Type': content_type,
            'Accept': 'application/json'
        }
