"""Tree node data model."""

NO_FOLDER = 'no-folder'
NO_CONNECTION = 'no-connection'
QUERY = 'query'
WORK_ITEM = 'work-item'


class TreeNode:
    """One node of the work item tree.

    Work item nodes hold only the item id and the forest they belong to; the
    item itself and its children are looked up in that forest on demand.
    """

    def __init__(self, kind, label, query=None, item_id=None, forest=None):
        """Initialize a TreeNode.

        Args:
            kind (str): One of no-folder, no-connection, query, work-item
            label (str): Text shown for the node
            query (Query, optional): The query a query node stands for
            item_id (int, optional): The work item a work-item node stands for
            forest (WorkItemForest, optional): Shared index for work-item nodes
        """
        self.kind = kind
        self.label = label
        self.query = query
        self.item_id = item_id
        self.forest = forest

    @classmethod
    def no_folder(cls):
        return cls(NO_FOLDER, "Open a folder to see your work items")

    @classmethod
    def no_connection(cls):
        return cls(NO_CONNECTION, "Configure an organization to connect")

    @classmethod
    def for_query(cls, query):
        return cls(QUERY, query.name, query=query)

    @classmethod
    def for_item(cls, forest, item_id):
        item = forest.get(item_id)
        label = f"{item.state_marker} {item.id} {item.title}"
        return cls(WORK_ITEM, label, item_id=item_id, forest=forest)

    @property
    def work_item(self):
        if self.kind != WORK_ITEM:
            return None
        return self.forest.get(self.item_id)

    @property
    def description(self):
        """Secondary text: assignee and state."""
        item = self.work_item
        if item is None:
            return ""
        return f"{item.assignee_name}  •  {item.state}"

    def __eq__(self, other):
        if not isinstance(other, TreeNode):
            return NotImplemented
        return (self.kind, self.label, self.item_id, self.query) == \
            (other.kind, other.label, other.item_id, other.query)

    def __hash__(self):
        return hash((self.kind, self.label, self.item_id))

    def __repr__(self):
        return f"TreeNode({self.kind}, {self.label!r})"
