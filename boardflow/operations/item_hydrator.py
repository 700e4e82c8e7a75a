"""Work item hydration: fields, relations, avatars and linked branches."""

from boardflow.operations.base import Operation
from boardflow.models.branch import BranchRef
from boardflow.models.work_item import WorkItem
from boardflow.utils.branch_link import decode_branch_link, find_branch_relation
from boardflow.utils.errors import DecodeError


def avatar_data_uri(response):
    """Turn an avatar response into a data: URI, or '' when it carries no image."""
    if not response or not response.get('imageData'):
        return ""
    image_type = response.get('imageType') or 'image/png'
    if '/' not in image_type:
        image_type = f"image/{image_type.lower()}"
    return f"data:{image_type};base64,{response['imageData']}"


class ItemHydrator(Operation):
    """Expand an ordered id list into WorkItem snapshots."""

    def execute(self, ids, query_id=None):
        """Hydrate work items.

        Avatars and branches are memoized for this call only, so each distinct
        assignee and each distinct branch link costs one request per pass.

        Args:
            ids (list): Work item ids in display order
            query_id (str, optional): Query the ids came from, for reporting

        Returns:
            list: WorkItem objects in the order of ``ids``

        Raises:
            TransportError: If any fetch fails
        """
        ids = list(ids)
        if not ids:
            return []

        self.log(f"Fetching {len(ids)} work items with relations...")
        payloads = self.api.get_work_items(ids)
        ordered = self._order(ids, payloads, query_id)

        avatars = {}
        branches = {}
        work_items = []

        if self.progress:
            self.progress.create_bar(len(ordered), "Hydrating work items", "items")

        for item in ordered:
            assignee = self._resolve_assignee(item.assignee, avatars)
            branch = self._resolve_branch(item, branches)
            work_items.append(item.evolve(assignee=assignee, branch=branch))

            if self.progress:
                self.progress.update(1)
                self.progress.set_postfix(avatars=len(avatars), branches=len(branches))

        if self.progress:
            self.progress.close()

        self.log(f"Hydrated {len(work_items)} work items "
                 f"({len(avatars)} avatars, {len(branches)} branches fetched)")
        return work_items

    def _order(self, ids, payloads, query_id):
        """Put fetched items back into the query's order.

        The batch endpoint may reorder, omit or repeat items; ids that were not
        returned are dropped and reported.
        """
        by_id = {}
        for payload in payloads:
            try:
                item = WorkItem.from_api(payload)
            except (ValueError, TypeError) as e:
                self.log(f"ERROR: Skipping unreadable work item payload: {e}")
                if self.reporter:
                    self.reporter.add_general_warning('hydration', f"Unreadable work item payload: {e}")
                continue
            by_id.setdefault(item.id, item)

        ordered = []
        seen = set()
        for item_id in ids:
            if item_id in seen:
                continue
            seen.add(item_id)
            item = by_id.get(item_id)
            if item is None:
                self.log(f"  Work item {item_id} was not returned by the batch fetch")
                if self.reporter:
                    self.reporter.add_missing_item(query_id, item_id)
                continue
            ordered.append(item)
        return ordered

    def _resolve_assignee(self, assignee, avatars):
        if not assignee or not assignee.image_url:
            return assignee

        # Identities without a unique name are told apart by their avatar URL
        key = assignee.unique_name or assignee.image_url
        if key not in avatars:
            avatars[key] = avatar_data_uri(self.api.get_avatar(assignee.image_url))
        return assignee.with_avatar(avatars[key] or None)

    def _resolve_branch(self, item, branches):
        relation = find_branch_relation(item.relations)
        if relation is None:
            return BranchRef.empty()

        try:
            link, repository_id, branch_name = decode_branch_link(relation.get('url'))
        except DecodeError as e:
            self.log(f"  Work item {item.id}: {e}")
            if self.reporter:
                self.reporter.add_decode_error(item.id, relation.get('url'), str(e))
            return BranchRef.empty()

        if link not in branches:
            stats = self.api.get_branch(repository_id, branch_name,
                                        base_branch=self.config.integration_branch)
            branches[link] = BranchRef.from_stats(repository_id, stats or {'name': branch_name})
            self.log(f"  Work item {item.id}: linked to {branches[link]}")
        return branches[link]
