"""Saved query data model."""

class Query:
    """Represents a saved work item query configured for the tree."""

    def __init__(self, query_id, name):
        """Initialize a Query.

        Args:
            query_id (str): The query ID (the GUID shown in the query's web URL)
            name (str): The display name
        """
        self.id = query_id
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Query) and (self.id, self.name) == (other.id, other.name)

    def __repr__(self):
        return f"Query(id={self.id}, name={self.name})"
