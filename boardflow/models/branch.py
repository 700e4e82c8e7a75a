"""Linked branch data model."""

class BranchRef:
    """A git branch linked to a work item, with its position against the integration branch."""

    def __init__(self, repository_id, branch_name, ahead_count=0, behind_count=0, commit_id=None):
        """Initialize a BranchRef.

        Args:
            repository_id (str): The repository ID taken from the branch link
            branch_name (str): The branch name, without refs/heads/
            ahead_count (int): Commits on the branch not on the integration branch
            behind_count (int): Commits on the integration branch not on the branch
            commit_id (str, optional): Head commit of the branch
        """
        self.repository_id = repository_id
        self.branch_name = branch_name
        self.ahead_count = ahead_count
        self.behind_count = behind_count
        self.commit_id = commit_id

    @classmethod
    def empty(cls):
        """Placeholder attached to items with no resolvable branch."""
        return cls(repository_id=None, branch_name=None)

    def __bool__(self):
        return bool(self.branch_name)

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'repository_id': self.repository_id,
            'branch_name': self.branch_name,
            'ahead_count': self.ahead_count,
            'behind_count': self.behind_count,
            'commit_id': self.commit_id
        }

    @classmethod
    def from_stats(cls, repository_id, data):
        """Create BranchRef from a git branch stats response.

        Args:
            repository_id (str): Repository the stats were requested for
            data (dict): Response with name, aheadCount, behindCount and commit.commitId
        """
        commit = data.get('commit') or {}
        return cls(
            repository_id=repository_id,
            branch_name=data.get('name'),
            ahead_count=int(data.get('aheadCount') or 0),
            behind_count=int(data.get('behindCount') or 0),
            commit_id=commit.get('commitId')
        )

    def __eq__(self, other):
        return isinstance(other, BranchRef) and self.to_dict() == other.to_dict()

    def __repr__(self):
        if not self:
            return "BranchRef(<none>)"
        return (f"BranchRef(repo={self.repository_id}, branch={self.branch_name}, "
                f"ahead={self.ahead_count}, behind={self.behind_count})")
