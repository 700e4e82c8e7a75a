"""Create work items and edit single fields."""

import markdown

from boardflow.operations.base import Operation
from boardflow.models.work_item import WorkItemField

WORK_ITEM_TYPES = ('Bug', 'Issue', 'Epic', 'Feature', 'Story', 'Task', 'User Story')


class WorkItemEditor(Operation):
    """Write-side counterpart of the hydrator for plain field edits."""

    def __init__(self, config, boards_api, on_refresh=None, debug_logger=None,
                 exception_reporter=None):
        super().__init__(config, boards_api, debug_logger=debug_logger,
                         exception_reporter=exception_reporter)
        self.on_refresh = on_refresh

    def create(self, item_type, title, description=None):
        """Create a work item.

        Args:
            item_type (str): One of WORK_ITEM_TYPES
            title (str): Title, required
            description (str, optional): HTML description

        Returns:
            int: The new work item's id

        Raises:
            ValueError: On an unknown type or an empty title
            TransportError: If the create call fails
        """
        if item_type not in WORK_ITEM_TYPES:
            raise ValueError(f"Unknown work item type {item_type!r}; "
                             f"expected one of {', '.join(WORK_ITEM_TYPES)}")
        if not title or not title.strip():
            raise ValueError("A title is required")

        operations = [
            {'op': 'add', 'path': WorkItemField.TITLE.path, 'value': title.strip()},
            {'op': 'add', 'path': WorkItemField.DESCRIPTION.path, 'value': description or ''},
        ]
        created = self.api.create_work_item(item_type, operations) or {}
        self.log(f"Created {item_type} {created.get('id')}: {title}")

        self._refresh()
        return created.get('id')

    def update_field(self, item_id, field, value):
        """Replace one field on a work item.

        ``field`` may be a WorkItemField or a raw reference name such as
        ``Custom.Team``. Descriptions are written as Markdown and stored as HTML.
        """
        name = field.value if isinstance(field, WorkItemField) else field
        if not name:
            raise ValueError("A field name is required")

        if name == WorkItemField.DESCRIPTION.value:
            value = self._to_html(value)

        self.api.update_work_item(item_id, [
            {'op': 'replace', 'path': f"/fields/{name}", 'value': value},
        ])
        self.log(f"Updated {name} on work item {item_id}")

        self._refresh()

    def _to_html(self, text):
        """Render Markdown to HTML, falling back to the raw text."""
        try:
            return markdown.markdown(text or '')
        except Exception as e:
            self.log(f"WARNING: Could not render description as Markdown: {e}")
            if self.reporter:
                self.reporter.add_general_warning('description', f"Sent unrendered: {e}")
            return text

    def _refresh(self):
        if self.on_refresh:
            self.on_refresh()
