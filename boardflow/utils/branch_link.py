"""Encode and decode the artifact links that tie branches to work items.

A linked branch is stored on the work item as an ``ArtifactLink`` relation whose
url looks like::

    vstfs:///Git/Ref/<org-id>%2F<repo-id>%2FGB<branch-name>

Everything after ``vstfs:///Git/Ref/`` is URL-encoded. ``GB`` marks a git branch.
"""

from urllib.parse import quote, unquote

from boardflow.utils.errors import DecodeError

LINK_PREFIX = "vstfs:///Git/Ref/"
BRANCH_MARKER = "/GB"
BRANCH_RELATION_NAME = "Branch"

# vstfs: / '' / '' / Git / Ref / <org> / <repo> / GB<branch>
_REPO_FIELD = 6


def find_branch_relation(relations):
    """Return the first relation named "Branch", or None."""
    for relation in relations or ():
        attributes = relation.get('attributes') or {}
        if attributes.get('name') == BRANCH_RELATION_NAME:
            return relation
    return None


def decode_branch_link(raw_url):
    """Decode a branch artifact link.

    Args:
        raw_url (str): The relation url as stored on the work item

    Returns:
        tuple: (decoded_link, repository_id, branch_name)

    Raises:
        DecodeError: If the link has no branch marker or no repository field
    """
    decoded = unquote(raw_url or "")
    idx = decoded.find(BRANCH_MARKER)
    if idx == -1:
        raise DecodeError(raw_url, "no GB branch marker")

    parts = decoded.split("/")
    if len(parts) <= _REPO_FIELD + 1 or not parts[_REPO_FIELD]:
        raise DecodeError(raw_url, "no repository id")

    branch_name = decoded[idx + len(BRANCH_MARKER):]
    if not branch_name:
        raise DecodeError(raw_url, "empty branch name")

    return decoded, parts[_REPO_FIELD], branch_name


def encode_branch_link(scope_id, repository_id, branch_name):
    """Build the artifact link that attaches ``branch_name`` to a work item."""
    return LINK_PREFIX + quote(f"{scope_id}/{repository_id}/GB{branch_name}", safe="")
