"""Progress tracking utilities."""

from tqdm import tqdm
import sys

class ProgressTracker:
    """Track and display progress while items are being hydrated."""

    def __init__(self, debug=False, enabled=True):
        """Initialize the progress tracker.

        Args:
            debug (bool): Enable debug output
            enabled (bool): Draw progress bars at all
        """
        self.debug = debug
        self.enabled = enabled
        self.current_bar = None

    def create_bar(self, total, description, unit='items'):
        """Create a new progress bar.

        Args:
            total (int): Total number of items
            description (str): Description of the operation
            unit (str): Unit name for items

        Returns:
            tqdm: Progress bar instance, or None when disabled
        """
        self.close()
        if not self.enabled:
            return None

        self.current_bar = tqdm(
            total=total,
            desc=description,
            unit=unit,
            ncols=100,
            file=sys.stderr,
            leave=False
        )
        return self.current_bar

    def update(self, n=1):
        """Update the current progress bar."""
        if self.current_bar:
            self.current_bar.update(n)

    def set_postfix(self, **kwargs):
        """Set postfix values for the progress bar."""
        if self.current_bar:
            self.current_bar.set_postfix(**kwargs)

    def close(self):
        """Close the current progress bar."""
        if self.current_bar:
            self.current_bar.close()
            self.current_bar = None


class StepTracker:
    """Print the steps of a lifecycle sequence as they run."""

    def __init__(self, debug=False, out=None):
        """Initialize the step tracker.

        Args:
            debug (bool): Enable debug output
            out (file, optional): Stream to write to (stdout by default)
        """
        self.debug = debug
        self.out = out or sys.stdout

    def start_sequence(self, name, item_id):
        print(f"\n{name} for work item {item_id}", file=self.out)
        print('-' * 60, file=self.out)

    def start_step(self, label):
        if self.debug:
            print(f"  ... {label}", file=self.out)

    def end_step(self, label, ok, message=None):
        """Record the outcome of one step.

        Args:
            label (str): Human readable step label
            ok (bool): Whether the step succeeded
            message (str, optional): Failure text from the tool or service
        """
        if ok:
            print(f"  ✓ {label}", file=self.out)
        else:
            print(f"  ✗ {label}", file=self.out)
            if message:
                for line in message.splitlines():
                    print(f"      {line}", file=self.out)
