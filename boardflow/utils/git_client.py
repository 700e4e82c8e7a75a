"""Local git operations used by the lifecycle sequences."""

import os
import subprocess

from boardflow.utils.errors import VersionControlStepError


def find_repository(workspace):
    """Return the first git repository in the workspace, or None.

    The workspace itself wins when it is a repository; otherwise its direct
    sub-folders are checked in name order.
    """
    if not workspace or not os.path.isdir(workspace):
        return None
    if os.path.exists(os.path.join(workspace, '.git')):
        return workspace
    for name in sorted(os.listdir(workspace)):
        candidate = os.path.join(workspace, name)
        if os.path.isdir(candidate) and os.path.exists(os.path.join(candidate, '.git')):
            return candidate
    return None


class GitClient:
    """Runs git commands in one repository and raises on failure."""

    def __init__(self, repo_path, remote='origin', debug_logger=None):
        """Initialize the git client.

        Args:
            repo_path (str): Root of the repository working tree
            remote (str): Remote the branches are fetched from and pushed to
            debug_logger (DebugLogger, optional): Debug logger instance
        """
        self.repo_path = repo_path
        self.remote = remote
        self.logger = debug_logger

    def _run(self, *args):
        cmd = ['git', *args]
        if self.logger:
            self.logger.log(f"$ {' '.join(cmd)} (in {self.repo_path})")
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=False
            )
        except OSError as e:
            raise VersionControlStepError(cmd, str(e)) from e

        if result.returncode != 0:
            if self.logger:
                self.logger.log(f"ERROR: {' '.join(cmd)} exited {result.returncode}: {result.stderr.strip()}")
            raise VersionControlStepError(cmd, result.stderr or result.stdout)
        return result.stdout.strip()

    def fetch(self):
        return self._run('fetch', self.remote)

    def checkout(self, ref):
        return self._run('checkout', ref)

    def pull(self):
        return self._run('pull')

    def push(self):
        return self._run('push', '--set-upstream', self.remote, 'HEAD')

    def delete_branch(self, ref, force=False):
        return self._run('branch', '-D' if force else '-d', ref)

    def rebase(self, onto):
        return self._run('rebase', onto)
