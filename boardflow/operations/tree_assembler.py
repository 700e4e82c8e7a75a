"""Build the work item tree from the flat results of each query."""

from boardflow.models.tree_node import TreeNode, QUERY, WORK_ITEM
from boardflow.models.work_item import NO_PARENT
from boardflow.utils.errors import TransportError


class WorkItemForest:
    """All items of one query plus a parent -> children index.

    Built once per refresh and never mutated afterwards. Order everywhere
    follows the order of ``items``.
    """

    def __init__(self, items, query_id=None):
        self.query_id = query_id
        self.items = tuple(items)
        self._by_id = {}
        self._children = {}

        for item in self.items:
            self._by_id.setdefault(item.id, item)
        for item in self.items:
            self._children.setdefault(item.parent, []).append(item.id)

    def get(self, item_id):
        return self._by_id[item_id]

    def children_of(self, item_id):
        """Ids of the items whose parent is ``item_id``."""
        return list(self._children.get(item_id, ()))

    def has_children(self, item_id):
        return bool(self._children.get(item_id))

    def roots(self):
        """Ids of the items with no parent."""
        return self.children_of(NO_PARENT)


class WorkItemTreeProvider:
    """Lazily expands the tree: queries, then root items, then their children.

    A query's items are fetched the first time its node is expanded and kept
    until refresh() is called.
    """

    def __init__(self, config, query_executor, item_hydrator, debug_logger=None,
                 exception_reporter=None):
        """Initialize the tree provider.

        Args:
            config (Config): Configuration instance
            query_executor (QueryExecutor): Runs saved queries
            item_hydrator (ItemHydrator): Expands ids into work items
            debug_logger (DebugLogger, optional): Debug logger instance
            exception_reporter (ExceptionReporter, optional): Receives fetch failures
        """
        self.config = config
        self.query_executor = query_executor
        self.item_hydrator = item_hydrator
        self.logger = debug_logger
        self.reporter = exception_reporter
        self.generation = 0
        self._forests = {}
        self._listeners = []

    def on_refresh(self, listener):
        """Register a callable invoked after every refresh()."""
        self._listeners.append(listener)

    def refresh(self):
        """Drop every cached query result and notify listeners."""
        self.generation += 1
        self._forests.clear()
        if self.logger:
            self.logger.log(f"Tree refreshed (generation {self.generation})")
        for listener in list(self._listeners):
            listener()

    def roots(self):
        """Top level nodes: a placeholder, or one node per configured query."""
        if not self.config.has_workspace():
            return [TreeNode.no_folder()]
        if not self.config.org_url:
            return [TreeNode.no_connection()]
        return [TreeNode.for_query(query) for query in self.config.queries]

    def children(self, node=None):
        """Children of ``node``; the top level when ``node`` is None."""
        if node is None:
            return self.roots()

        if node.kind == QUERY:
            forest = self.forest_for(node.query.id)
            return [TreeNode.for_item(forest, item_id) for item_id in forest.roots()]

        if node.kind == WORK_ITEM:
            return [TreeNode.for_item(node.forest, item_id)
                    for item_id in node.forest.children_of(node.item_id)]

        return []

    def is_expandable(self, node):
        """Whether ``node`` should be drawn with an expand affordance."""
        if node.kind == WORK_ITEM:
            return node.forest.has_children(node.item_id)
        if node.kind == QUERY:
            forest = self._forests.get(node.query.id)
            return forest is None or bool(forest.roots())
        return False

    def forest_for(self, query_id):
        """The cached forest for a query, fetching it on first use."""
        forest = self._forests.get(query_id)
        if forest is not None:
            return forest

        generation = self.generation
        try:
            result = self.query_executor.execute(query_id)
            items = self.item_hydrator.execute(result.ids, query_id=query_id)
        except TransportError as e:
            if self.logger:
                self.logger.log(f"ERROR: Failed to load query {query_id}: {e}")
            if self.reporter:
                self.reporter.add_transport_error(f"query {query_id}", str(e))
            return WorkItemForest([], query_id=query_id)

        forest = WorkItemForest(items, query_id=query_id)
        # A refresh during the fetch makes this result stale; hand it out but do not keep it.
        if generation == self.generation:
            self._forests[query_id] = forest
        return forest
