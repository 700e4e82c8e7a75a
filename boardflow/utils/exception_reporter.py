"""Collect the conditions that would otherwise pass silently and report them."""

from datetime import datetime

class ExceptionReporter:
    """Track skipped branch links, missing items, missing context and failures."""

    def __init__(self):
        """Initialize the exception reporter."""
        self.decode_errors = []
        self.missing_items = []
        self.context_errors = []
        self.transport_errors = []
        self.step_failures = []
        self.general_warnings = []

    def add_decode_error(self, item_id, link, error_message):
        """Record a branch link that could not be decoded."""
        self.decode_errors.append({
            'item_id': item_id,
            'link': link,
            'error': error_message
        })

    def add_missing_item(self, query_id, item_id):
        """Record an id returned by a query but not by the batch fetch."""
        self.missing_items.append({
            'query_id': query_id,
            'item_id': item_id
        })

    def add_context_error(self, operation, missing):
        """Record an operation skipped because configuration was missing."""
        self.context_errors.append({
            'operation': operation,
            'missing': list(missing)
        })

    def add_transport_error(self, operation, error_message):
        """Record a failed remote call."""
        self.transport_errors.append({
            'operation': operation,
            'error': error_message
        })

    def add_step_failure(self, sequence, item_id, step, error_message):
        """Record the step that aborted a lifecycle sequence."""
        self.step_failures.append({
            'sequence': sequence,
            'item_id': item_id,
            'step': step,
            'error': error_message
        })

    def add_general_warning(self, category, message):
        """Record a general warning."""
        self.general_warnings.append({
            'category': category,
            'message': message
        })

    def has_entries(self):
        return bool(self.decode_errors or self.missing_items or self.context_errors or
                    self.transport_errors or self.step_failures or self.general_warnings)

    def render(self):
        """Render everything recorded so far as plain text.

        Returns:
            str: The report, empty when nothing was recorded
        """
        if not self.has_entries():
            return ""

        lines = []
        lines.append("=" * 60)
        lines.append(f"Issues ({datetime.now().strftime('%Y-%m-%d %H:%M:%S')})")
        lines.append("=" * 60)

        if self.context_errors:
            lines.append(f"MISSING CONFIGURATION ({len(self.context_errors)})")
            for entry in self.context_errors:
                lines.append(f"  - {entry['operation']}: {', '.join(entry['missing'])}")

        if self.transport_errors:
            lines.append(f"API ERRORS ({len(self.transport_errors)})")
            for entry in self.transport_errors:
                lines.append(f"  - {entry['operation']}: {entry['error']}")

        if self.step_failures:
            lines.append(f"FAILED STEPS ({len(self.step_failures)})")
            for entry in self.step_failures:
                lines.append(f"  - {entry['sequence']} #{entry['item_id']} at {entry['step']}")
                for line in (entry['error'] or '').splitlines():
                    lines.append(f"      {line}")

        if self.decode_errors:
            lines.append(f"UNREADABLE BRANCH LINKS ({len(self.decode_errors)})")
            for entry in self.decode_errors:
                lines.append(f"  - #{entry['item_id']}: {entry['error']}")

        if self.missing_items:
            lines.append(f"ITEMS NOT RETURNED ({len(self.missing_items)})")
            for entry in self.missing_items:
                lines.append(f"  - #{entry['item_id']} (query {entry['query_id']})")

        if self.general_warnings:
            by_category = {}
            for warning in self.general_warnings:
                by_category.setdefault(warning['category'], []).append(warning['message'])
            lines.append(f"WARNINGS ({len(self.general_warnings)})")
            for category in sorted(by_category):
                lines.append(f"  {category}:")
                for message in by_category[category]:
                    lines.append(f"    - {message}")

        return '\n'.join(lines)
