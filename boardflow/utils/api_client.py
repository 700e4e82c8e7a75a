"""HTTP client for the Azure DevOps REST API."""

import requests

from boardflow.utils.errors import TransportError

JSON_PATCH = 'application/json-patch+json'


class APIClient:
    """HTTP client for the work item and git REST APIs.

    Calls are made once; failures are raised as TransportError and never retried.
    """

    def __init__(self, base_url, auth_manager, config, debug=False, debug_logger=None):
        """Initialize the API client.

        Args:
            base_url (str): The organization URL requests are made against
            auth_manager (AuthManager): Authentication manager instance
            config (Config): Configuration instance
            debug (bool): Enable debug output
            debug_logger (DebugLogger, optional): Debug logger instance
        """
        self.base_url = base_url.rstrip('/') if base_url else ''
        self.auth = auth_manager
        self.config = config
        self.debug = debug
        self.logger = debug_logger

    def url_for(self, endpoint):
        """Resolve an endpoint path (or an absolute URL) to a full URL."""
        if is_absolute(endpoint):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def get(self, endpoint, params=None):
        """Make a GET request.

        Args:
            endpoint (str): API endpoint path or absolute URL
            params (dict, optional): Query parameters

        Returns:
            dict or list: Response data
        """
        return self._request('GET', endpoint, params=params)

    def post(self, endpoint, json_data=None, params=None, content_type='application/json'):
        """Make a POST request.

        Args:
            endpoint (str): API endpoint path
            json_data (dict or list, optional): JSON body
            params (dict, optional): Query parameters
            content_type (str): Body content type

        Returns:
            dict: Response data
        """
        return self._request('POST', endpoint, params=params, json_data=json_data,
                             content_type=content_type)

    def patch(self, endpoint, operations, params=None):
        """Send a JSON-patch document.

        Args:
            endpoint (str): API endpoint path
            operations (list): Patch operations ({op, path, value})
            params (dict, optional): Query parameters

        Returns:
            dict: Response data
        """
        return self._request('PATCH', endpoint, params=params, json_data=operations,
                             content_type=JSON_PATCH)

    def _request(self, method, endpoint, params=None, json_data=None,
                 content_type='application/json'):
        url = self.url_for(endpoint)
        params = dict(params or {})
        # Absolute URLs (avatars) are sent exactly as the service handed them out
        if not is_absolute(endpoint):
            params.setdefault('api-version', self.config.api_version)

        if self.logger:
            self.logger.log(f"{method} {url} params={params}")
        if self.debug:
            print(f"  {method} {url}...")

        try:
            headers = self.auth.get_headers(content_type)
            response = requests.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_data,
                timeout=self.config.request_timeout
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if self.logger:
                self.logger.log(f"ERROR: {method} {url} returned {status}: {e}")
            raise TransportError(method, url, _error_message(e), status_code=status) from e
        except requests.exceptions.RequestException as e:
            if self.logger:
                self.logger.log(f"ERROR: {method} {url} failed: {e}")
            raise TransportError(method, url, str(e)) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(method, url, "response is not JSON",
                                 status_code=response.status_code) from e


def is_absolute(endpoint):
    return endpoint.startswith('http://') or endpoint.startswith('https://')


def _error_message(error):
    """Prefer the service's own message over the generic HTTP reason."""
    response = error.response
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get('message'):
            return body['message']
    return str(error)
