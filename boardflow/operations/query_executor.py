"""Saved query execution."""

from boardflow.operations.base import Operation
from boardflow.utils.errors import ContextMissingError


class QueryResult:
    """Ordered work item ids returned by a query, or the reason there are none."""

    def __init__(self, query_id, ids, reason=None):
        self.query_id = query_id
        self.ids = list(ids)
        self.reason = reason

    @property
    def skipped(self):
        return self.reason is not None

    def __repr__(self):
        if self.reason:
            return f"QueryResult(query={self.query_id}, skipped={self.reason})"
        return f"QueryResult(query={self.query_id}, ids={self.ids})"


def normalize_query_response(response):
    """Reduce a WIQL response to its ordered list of work item ids.

    Flat queries answer with ``workItems: [{id}]``; tree and one-hop queries
    answer with ``workItemRelations: [{source, target: {id}, rel}]``. Only the
    target ids are kept: the tree is rebuilt from each item's parent field.
    """
    response = response or {}
    if response.get('workItemRelations') is not None:
        refs = [relation.get('target') for relation in response['workItemRelations']]
    else:
        refs = response.get('workItems') or []
    return [int(ref['id']) for ref in refs if ref and ref.get('id') is not None]


class QueryExecutor(Operation):
    """Run a saved query against the current organization and project."""

    def execute(self, query_id):
        """Execute a saved query.

        Args:
            query_id (str): The saved query ID

        Returns:
            QueryResult: Ordered ids, or an empty result carrying a ContextMissingError

        Raises:
            ValueError: If query_id is empty
            TransportError: If the query call fails
        """
        if not query_id:
            raise ValueError("A query id is required")

        missing = self.config.missing_context('org_url', 'project')
        if missing:
            reason = ContextMissingError(missing)
            self.log(f"Skipping query {query_id}: {reason}")
            if self.reporter:
                self.reporter.add_context_error(f"query {query_id}", missing)
            return QueryResult(query_id, [], reason=reason)

        self.log(f"Running query {query_id}...")
        response = self.api.run_query(query_id)
        ids = normalize_query_response(response)
        self.log(f"Query {query_id} returned {len(ids)} work items")

        return QueryResult(query_id, ids)
