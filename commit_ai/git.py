import logging
import subprocess
from typing import List

from commit_ai.errors import EmptyDiffError, GitCommandError

logger = logging.getLogger("commit_ai")


def run_git_command(args: List[str], repo_path: str) -> subprocess.CompletedProcess:
    """Runs git with the given arguments inside repo_path."""
    command = ["git"] + list(args)
    logger.debug(f"Running: {' '.join(command)} (cwd={repo_path})")
    try:
        # diffs of non-UTF-8 files must not fail to decode
        return subprocess.run(command, check=True, capture_output=True, encoding="utf-8", errors="replace",
                              cwd=repo_path)
    except FileNotFoundError as e:
        raise GitCommandError(command, "git is not installed or not in your PATH") from e
    except subprocess.CalledProcessError as e:
        raise GitCommandError(command, e.stderr or "", e.returncode) from e


def ensure_repository(repo_path: str) -> None:
    """Fails unless repo_path is inside a git work tree."""
    result = run_git_command(["rev-parse", "--is-inside-work-tree"], repo_path)
    if result.stdout.strip() != "true":
        raise GitCommandError(["git", "rev-parse", "--is-inside-work-tree"], f"'{repo_path}' is not a git work tree")


def get_staged_diff(repo_path: str) -> str:
    """Gets the diff of all staged files."""
    # '--cached' shows the changes staged for the next commit.
    result = run_git_command(["diff", "--cached"], repo_path)
    if not result.stdout.strip():
        raise EmptyDiffError("No files are staged. Stage files with 'git add' before running.")
    logger.info(f"Captured staged diff ({len(result.stdout)} characters)")
    return result.stdout


def commit(repo_path: str, message: str) -> str:
    """Commits the staged changes with message and returns git's output."""
    result = run_git_command(["commit", "-m", message], repo_path)
    logger.info("Commit created")
    return result.stdout
