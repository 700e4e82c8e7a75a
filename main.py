#!/usr/bin/env python3
"""
boardflow

Browse saved work item queries as a tree and drive the start-work / finish-work
branch lifecycle for a work item against the local git checkout.
"""

import sys
import json
import argparse
import webbrowser
from boardflow.utils.auth import AuthManager
from boardflow.utils.config import Config
from boardflow.utils.api_client import APIClient
from boardflow.utils.boards_api import BoardsAPI
from boardflow.utils.progress import ProgressTracker, StepTracker
from boardflow.utils.exception_reporter import ExceptionReporter
from boardflow.utils.debug_logger import DebugLogger
from boardflow.utils.errors import BoardflowError, ContextMissingError
from boardflow.models.query import Query
from boardflow.models.tree_node import TreeNode
from boardflow.operations.query_executor import QueryExecutor
from boardflow.operations.item_hydrator import ItemHydrator
from boardflow.operations.tree_assembler import WorkItemTreeProvider
from boardflow.operations.work_item_editor import WorkItemEditor, WORK_ITEM_TYPES
from boardflow.operations.work_item_session import (
    WorkItemSession, START_WORK, FINISH_WORK, CHECKOUT, CREATE_BRANCH, UPDATE_FIELD
)

SEQUENCE_ACTIONS = {
    'start': START_WORK,
    'finish': FINISH_WORK,
    'checkout': CHECKOUT,
}


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='boardflow - work item tree and branch lifecycle for Azure Boards'
    )
    parser.add_argument('--env-file', default='.env', help='Path to environment file (default: .env)')
    parser.add_argument('--org-url', help='Organization URL, e.g. https://dev.azure.com/contoso')
    parser.add_argument('--project', help='Project name')
    parser.add_argument('--repo', help='Repository name or id')
    parser.add_argument('--workspace', help='Workspace folder holding the git checkout')
    parser.add_argument('--debug', action='store_true', help='Enable debug output')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('queries', help='List the configured queries')

    tree = sub.add_parser('tree', help='Print the work item tree of a query')
    tree.add_argument('query_id', help='Saved query id')

    show = sub.add_parser('show', help='Show one work item')
    show.add_argument('item_id', type=int)
    show.add_argument('--json', action='store_true', help='Print the item as JSON')

    open_item = sub.add_parser('open', help='Open a work item in the browser')
    open_item.add_argument('item_id', type=int)

    mention = sub.add_parser('mention', help='Print a "#id - title" reference to a work item')
    mention.add_argument('item_id', type=int)

    for name, help_text in (('start', 'Start work on an item'),
                            ('finish', 'Finish work on an item'),
                            ('checkout', "Check out an item's branch")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument('item_id', type=int)
        cmd.add_argument('--branch', help='Branch name (defaults to the linked branch)')

    create_branch = sub.add_parser('create-branch', help='Create and link a branch for an item')
    create_branch.add_argument('item_id', type=int)
    create_branch.add_argument('--name', help='Branch name (skips the confirmation prompt)')

    create_item = sub.add_parser('create-item', help='Create a work item')
    create_item.add_argument('type', choices=WORK_ITEM_TYPES)
    create_item.add_argument('title')
    create_item.add_argument('--description', help='Optional description')

    update = sub.add_parser('update-field', help='Replace one field on a work item')
    update.add_argument('item_id', type=int)
    update.add_argument('field', help='Field reference name, e.g. System.Title')
    update.add_argument('value')

    return parser.parse_args(argv)


def print_tree(provider, node, depth=0, out=None):
    """Print ``node`` and its descendants."""
    out = out or sys.stdout
    for child in provider.children(node):
        marker = '▸' if provider.is_expandable(child) else ' '
        line = f"{'  ' * depth}{marker} {child.label}"
        if child.description:
            line += f"  ({child.description})"
        print(line, file=out)
        if provider.is_expandable(child):
            print_tree(provider, child, depth + 1, out)


def print_item(item, out=None):
    """Print the detail view of a work item."""
    out = out or sys.stdout
    print(f"{item.type} {item.id}: {item.title}", file=out)
    print(f"  State:       {item.state_marker} {item.state} ({item.reason or '-'})", file=out)
    print(f"  Assigned to: {item.assignee_name}", file=out)
    if item.story_points is not None:
        print(f"  Points:      {item.story_points:g}", file=out)
    if item.has_parent:
        print(f"  Parent:      {item.parent}", file=out)
    if item.branch:
        print(f"  Branch:      {item.branch.branch_name} "
              f"(ahead {item.branch.ahead_count}, behind {item.branch.behind_count})", file=out)
    else:
        print("  Branch:      none (use create-branch)", file=out)
    if item.url:
        print(f"  URL:         {item.url}", file=out)


def load_item(hydrator, item_id):
    items = hydrator.execute([item_id])
    if not items:
        raise BoardflowError(f"Work item {item_id} not found")
    return items[0]


def confirm_branch_name(proposed):
    """Offer the proposed branch name for editing; empty input keeps it."""
    answer = input(f"Branch name [{proposed}]: ").strip()
    return answer or proposed


def run_command(args, config, debug_logger, reporter, open_url=None):
    """Run the selected subcommand.

    ``open_url`` opens web pages (the work item, the pull request); it
    defaults to webbrowser.open.

    Returns:
        int: Process exit code
    """
    provider_args = dict(debug_logger=debug_logger, exception_reporter=reporter)

    if args.command == 'queries':
        provider = WorkItemTreeProvider(config, None, None, **provider_args)
        for node in provider.roots():
            suffix = f"  [{node.query.id}]" if node.query else ''
            print(f"{node.label}{suffix}")
        return 0

    is_valid, error = config.validate()
    if not is_valid:
        print(f"Configuration error: {error}")
        return 1

    auth_manager = AuthManager(config.org_url, config.pat, debug=config.debug)
    api_client = APIClient(config.org_url, auth_manager, config, config.debug, debug_logger)
    boards_api = BoardsAPI(api_client, config.project)
    progress = ProgressTracker(config.debug, enabled=sys.stderr.isatty())

    query_executor = QueryExecutor(config, boards_api, debug_logger=debug_logger,
                                   exception_reporter=reporter)
    hydrator = ItemHydrator(config, boards_api, progress=progress, debug_logger=debug_logger,
                            exception_reporter=reporter)
    provider = WorkItemTreeProvider(config, query_executor, hydrator, **provider_args)

    if args.command == 'tree':
        names = {query.id: query.name for query in config.queries}
        query = Query(args.query_id, names.get(args.query_id, args.query_id))
        print(query.name)
        print_tree(provider, TreeNode.for_query(query), depth=1)
        return 0

    open_url = open_url or webbrowser.open

    if args.command == 'show':
        item = load_item(hydrator, args.item_id)
        if args.json:
            print(json.dumps(item.to_dict(), indent=2))
        else:
            print_item(item)
        return 0

    if args.command == 'mention':
        print(load_item(hydrator, args.item_id).mention)
        return 0

    if args.command == 'open':
        item = load_item(hydrator, args.item_id)
        if not item.url:
            raise BoardflowError(f"Work item {item.id} has no web link")
        debug_logger.log(f"Opening {item.url}")
        open_url(item.url)
        return 0

    if args.command == 'create-item':
        editor = WorkItemEditor(config, boards_api, on_refresh=provider.refresh,
                                debug_logger=debug_logger, exception_reporter=reporter)
        item_id = editor.create(args.type, args.title, args.description)
        print(f"✓ Created {args.type} {item_id}")
        return 0

    item = load_item(hydrator, args.item_id)
    with WorkItemSession.open(config, boards_api, on_refresh=provider.refresh, open_url=open_url,
                              step_tracker=StepTracker(config.debug),
                              debug_logger=debug_logger,
                              exception_reporter=reporter) as session:
        session.show(item)

        if args.command == 'update-field':
            ok = session.dispatch(UPDATE_FIELD, value=args.value, field=args.field)
            print(f"✓ Updated {args.field}" if ok else f"✗ Could not update {args.field}")
            return 0 if ok else 1

        if args.command == 'create-branch':
            confirm = (lambda proposed: args.name) if args.name else confirm_branch_name
            result = session.dispatch(CREATE_BRANCH, confirm_name=confirm)
            if result.cancelled:
                print("Cancelled.")
                return 1
        else:
            result = session.dispatch(SEQUENCE_ACTIONS[args.command], value=args.branch)

    print("\n✓ Done" if result.ok else f"\n✗ Stopped at: {result.failed_step.label}")
    return 0 if result.ok else 1


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    config = Config.from_env(args.env_file)
    Config.from_args(args, config)

    debug_logger = DebugLogger(config.log_file, console_debug=config.debug, secrets=[config.pat])
    reporter = ExceptionReporter()
    debug_logger.section(f"boardflow {args.command} (org={config.org_url}, project={config.project})")

    try:
        exit_code = run_command(args, config, debug_logger, reporter)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        debug_logger.log("INTERRUPTED: Operation cancelled by user")
        exit_code = 1
    except ContextMissingError as e:
        print(f"\nNot configured: {', '.join(e.missing)}")
        exit_code = 1
    except (BoardflowError, ValueError) as e:
        print(f"\nError: {e}")
        debug_logger.log(f"FATAL ERROR: {e}")
        if config.debug:
            import traceback
            debug_logger.log(f"Traceback: {traceback.format_exc()}")
        exit_code = 1

    report = reporter.render()
    if report:
        print("\n" + report)
    debug_logger.close()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
