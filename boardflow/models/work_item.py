"""Work item data model."""

from enum import Enum

from boardflow.models.branch import BranchRef

NO_PARENT = -1

STATE_MARKERS = {
    'Closed': '✅',
    'New': '🔳',
    'Resolved': '🟧',
}
DEFAULT_STATE_MARKER = '🟦'


class WorkItemField(Enum):
    """Remote field reference names read from or written to work items."""

    ID = 'System.Id'
    TYPE = 'System.WorkItemType'
    TITLE = 'System.Title'
    DESCRIPTION = 'System.Description'
    ACCEPTANCE_CRITERIA = 'Microsoft.VSTS.Common.AcceptanceCriteria'
    STATE = 'System.State'
    REASON = 'System.Reason'
    ASSIGNED_TO = 'System.AssignedTo'
    STORY_POINTS = 'Microsoft.VSTS.Scheduling.StoryPoints'
    PARENT = 'System.Parent'

    @property
    def path(self):
        """JSON-patch path for this field."""
        return f"/fields/{self.value}"

    def read(self, fields, default=None):
        """Read this field from a raw ``fields`` mapping."""
        value = (fields or {}).get(self.value)
        return default if value is None else value


class Assignee:
    """The identity a work item is assigned to."""

    def __init__(self, display_name, unique_name, image_url=None, avatar=None):
        """Initialize an Assignee.

        Args:
            display_name (str): Name shown to users
            unique_name (str): Unique identity name, usually the e-mail address
            image_url (str, optional): Avatar endpoint for this identity
            avatar (str, optional): Avatar as a data: URI
        """
        self.display_name = display_name
        self.unique_name = unique_name
        self.image_url = image_url
        self.avatar = avatar

    @classmethod
    def from_identity(cls, data):
        """Create Assignee from an identity reference, or None when unassigned."""
        if not data:
            return None
        if isinstance(data, str):
            return cls(display_name=data, unique_name=data)
        return cls(
            display_name=data.get('displayName') or data.get('uniqueName') or '',
            unique_name=data.get('uniqueName') or data.get('id') or '',
            image_url=data.get('imageUrl')
        )

    def with_avatar(self, avatar):
        """Return a copy carrying the resolved avatar."""
        return Assignee(self.display_name, self.unique_name, self.image_url, avatar)

    def __repr__(self):
        return f"Assignee({self.display_name} <{self.unique_name}>)"


class WorkItem:
    """Snapshot of one work item, valid for a single refresh pass."""

    def __init__(self, item_id, item_type, title, state='', reason='', description='',
                 acceptance_criteria='', assignee=None, story_points=None,
                 parent=NO_PARENT, url=None, relations=None, branch=None):
        self.id = item_id
        self.type = item_type
        self.title = title
        self.state = state
        self.reason = reason
        self.description = description
        self.acceptance_criteria = acceptance_criteria
        self.assignee = assignee
        self.story_points = story_points
        self.parent = parent
        self.url = url
        self.relations = tuple(relations or ())
        self.branch = branch if branch is not None else BranchRef.empty()

    @classmethod
    def from_api(cls, data):
        """Create WorkItem from a work item payload fetched with $expand=all.

        Raises:
            ValueError: If the payload carries no usable id
        """
        fields = data.get('fields') or {}
        item_id = WorkItemField.ID.read(fields, data.get('id'))
        if item_id is None:
            raise ValueError("Work item payload has no id")

        links = data.get('_links') or {}
        html = links.get('html') or {}

        return cls(
            item_id=int(item_id),
            item_type=WorkItemField.TYPE.read(fields, ''),
            title=WorkItemField.TITLE.read(fields, ''),
            state=WorkItemField.STATE.read(fields, ''),
            reason=WorkItemField.REASON.read(fields, ''),
            description=WorkItemField.DESCRIPTION.read(fields, ''),
            acceptance_criteria=WorkItemField.ACCEPTANCE_CRITERIA.read(fields, ''),
            assignee=Assignee.from_identity(WorkItemField.ASSIGNED_TO.read(fields)),
            story_points=_to_float(WorkItemField.STORY_POINTS.read(fields)),
            parent=int(WorkItemField.PARENT.read(fields, NO_PARENT)),
            url=html.get('href') or data.get('url'),
            relations=data.get('relations') or ()
        )

    def evolve(self, **changes):
        """Return a copy with some attributes replaced."""
        values = dict(
            item_id=self.id, item_type=self.type, title=self.title, state=self.state,
            reason=self.reason, description=self.description,
            acceptance_criteria=self.acceptance_criteria, assignee=self.assignee,
            story_points=self.story_points, parent=self.parent, url=self.url,
            relations=self.relations, branch=self.branch
        )
        values.update(changes)
        return WorkItem(**values)

    @property
    def has_parent(self):
        return self.parent != NO_PARENT

    @property
    def state_marker(self):
        return STATE_MARKERS.get(self.state, DEFAULT_STATE_MARKER)

    @property
    def assignee_name(self):
        return self.assignee.display_name if self.assignee else 'Unassigned'

    @property
    def mention(self):
        """Reference to paste into commit messages and chats."""
        return f"#{self.id} - {self.title}"

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'state': self.state,
            'reason': self.reason,
            'assigned_to': self.assignee.unique_name if self.assignee else None,
            'story_points': self.story_points,
            'parent': self.parent,
            'url': self.url,
            'branch': self.branch.to_dict() if self.branch else None
        }

    def __repr__(self):
        return f"WorkItem(id={self.id}, type={self.type}, title={self.title!r})"


def _to_float(value):
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
