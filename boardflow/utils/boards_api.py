"""Project-scoped endpoints of the work item tracking and git REST APIs."""

from urllib.parse import quote

from boardflow.utils.errors import TransportError

EMPTY_OBJECT_ID = "0" * 40


class BoardsAPI:
    """Endpoint wrappers used by the operations.

    Every method returns the decoded JSON payload and raises TransportError on failure.
    """

    def __init__(self, api_client, project):
        """Initialize the endpoint wrappers.

        Args:
            api_client (APIClient): Client bound to the organization URL
            project (str): Project name or id
        """
        self.api_client = api_client
        self.project = project

    @property
    def _project_path(self):
        return quote(self.project, safe='')

    def run_query(self, query_id):
        """Run a saved WIQL query."""
        return self.api_client.get(f"{self._project_path}/_apis/wit/wiql/{query_id}")

    def get_work_items(self, ids):
        """Fetch work items by id with fields and relations expanded."""
        response = self.api_client.get(
            f"{self._project_path}/_apis/wit/workitems",
            params={'ids': ','.join(str(i) for i in ids), '$expand': 'all'}
        )
        return (response or {}).get('value', [])

    def get_avatar(self, image_url):
        """Fetch an identity avatar as ``{imageType, imageData}``."""
        return self.api_client.get(image_url)

    def get_branch(self, repository, branch_name, base_branch=None):
        """Fetch branch statistics (head commit, ahead/behind against ``base_branch``)."""
        params = {'name': branch_name}
        if base_branch:
            params['baseVersionDescriptor.version'] = base_branch
            params['baseVersionDescriptor.versionType'] = 'branch'
        return self.api_client.get(
            f"{self._project_path}/_apis/git/repositories/{quote(repository, safe='')}/stats/branches",
            params=params
        )

    def create_ref(self, repository, branch_name, commit_id):
        """Create ``refs/heads/<branch_name>`` at ``commit_id``.

        Returns:
            dict: The ref update result for the new branch
        """
        response = self.api_client.post(
            f"{self._project_path}/_apis/git/repositories/{quote(repository, safe='')}/refs",
            json_data=[{
                'name': f"refs/heads/{branch_name}",
                'newObjectId': commit_id,
                'oldObjectId': EMPTY_OBJECT_ID
            }]
        )
        results = (response or {}).get('value') or []
        if not results:
            raise TransportError('POST', 'refs', "ref update returned no result")
        return results[0]

    def update_work_item(self, item_id, operations):
        """Apply JSON-patch operations to a work item."""
        return self.api_client.patch(
            f"{self._project_path}/_apis/wit/workitems/{item_id}", operations
        )

    def create_work_item(self, item_type, operations):
        """Create a work item of ``item_type`` from JSON-patch operations."""
        return self.api_client.post(
            f"{self._project_path}/_apis/wit/workitems/${quote(item_type, safe='')}",
            json_data=operations,
            content_type='application/json-patch+json'
        )

    def get_project(self):
        """Fetch the project record (used for its id)."""
        return self.api_client.get(f"_apis/projects/{self._project_path}")
