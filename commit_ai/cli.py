#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
AI-Powered Git Commit Script

Sends the staged diff to Google Gemini (or OpenAI when no Gemini key is
found) and commits the staged changes with the generated message.

Setup:
1. Install the package:
   pip install .

2. Put your API key in a .env file in your repository (or one of its parent
   directories), or export it:
   GEMINI_API_KEY="YOUR_KEY"
   OPENAI_API_KEY="YOUR_KEY"

How to Use:
1. Stage the files you want to commit:
   git add file1.py file2.md ...

2. Run:
   commit-ai commit
   commit-ai commit --dry-run
   commit-ai commit --noyes --repo-path='../my-repo'
   commit-ai message
   commit-ai providers
"""

import logging
import os
import re
import sys
from datetime import datetime
from typing import List, Optional

import fire
import questionary

from commit_ai import git
from commit_ai.config import (
    ENVIRONMENT_SOURCE, GEMINI, OPENAI, Settings, candidate_files, load_settings, mask, resolve_credentials,
)
from commit_ai.errors import CommitAIError, ProviderError, UserAbortedError
from commit_ai.generator import MessageGenerator


# ANSI color codes for better terminal output
class Colors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'


ANSI_ESCAPE = re.compile(r'\033\[[0-9;]*m')


class GitAICommitter:
    """Generates git commit messages from the staged diff with an LLM."""

    def __init__(self):
        self.colors = Colors()
        self.logger = logging.getLogger('commit_ai')
        self.log_path = None

    def _setup_logging(self, repo_path: str, log_dir: Optional[str]) -> None:
        """Sets up a session log file when a log directory is configured."""
        self.logger.setLevel(logging.DEBUG)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)
            handler.close()

        if not log_dir:
            self.logger.addHandler(logging.NullHandler())
            return

        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.log_path = os.path.join(log_dir, f"commit_ai_{timestamp}.log")

        file_handler = logging.FileHandler(self.log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(file_handler)

        self.logger.info("=== commit-ai session started ===")
        self.logger.info(f"Repository: {repo_path}")
        print(f"📝 Logging to: {self.colors.OKCYAN}{self.log_path}{self.colors.ENDC}")

    def _log_and_print(self, message: str, level: str = 'info') -> None:
        """Prints to the console and mirrors the message, uncoloured, into the log."""
        stream = sys.stderr if level in ('warning', 'error') else sys.stdout
        print(message, file=stream)

        clean_message = ANSI_ESCAPE.sub('', message)
        if level == 'debug':
            self.logger.debug(clean_message)
        elif level == 'warning':
            self.logger.warning(clean_message)
        elif level == 'error':
            self.logger.error(clean_message)
        else:
            self.logger.info(clean_message)

    def _ask_for_manual_message(self, errors: List[ProviderError]) -> Optional[str]:
        """Offers to type the commit message by hand after every provider failed."""
        self._log_and_print(f"{self.colors.FAIL}Could not generate a commit message:{self.colors.ENDC}", 'error')
        for error in errors:
            self._log_and_print(f"  - {error}", 'error')
        if not questionary.confirm("Enter the commit message manually?", default=True).ask():
            self._log_and_print(f"{self.colors.WARNING}Manual entry declined.{self.colors.ENDC}", 'warning')
            return None
        return questionary.text("Commit message:").ask()

    def _fail(self, error: Exception) -> None:
        self._log_and_print(f"{self.colors.FAIL}Error: {error}{self.colors.ENDC}", 'error')
        sys.exit(1)

    def _prepare(self, repo_path: str, log_dir: Optional[str]):
        abs_repo_path = os.path.abspath(repo_path)
        settings = load_settings()
        self._setup_logging(abs_repo_path, log_dir or settings.log_dir)
        return abs_repo_path, settings

    def _generate(self, abs_repo_path: str, settings: Settings, keep_placeholders: bool) -> str:
        """Runs diff capture, credential lookup and generation."""
        self._log_and_print(f"{self.colors.OKCYAN}Getting staged file diffs...{self.colors.ENDC}")
        git.ensure_repository(abs_repo_path)
        diff = git.get_staged_diff(abs_repo_path)

        credentials = resolve_credentials(abs_repo_path, settings)
        self._log_and_print(
            f"{self.colors.OKCYAN}Asking {credentials.provider} for a commit message... "
            f"(This may take a moment){self.colors.ENDC}"
        )
        generator = MessageGenerator(
            credentials,
            settings,
            manual_entry=self._ask_for_manual_message,
            strip_placeholders=not keep_placeholders,
        )
        message = generator.generate(diff)
        self.logger.info(f"Message source: {generator.provider_used}")
        return message

    def _confirm(self, message: str) -> str:
        action = questionary.select(
            "Commit with this message?",
            choices=["Yes", "Edit", "No"]
        ).ask()
        if action == "Yes":
            return message
        if action == "Edit":
            edited = questionary.text("Edit commit message:", default=message).ask()
            if edited and edited.strip():
                return edited.strip()
            raise UserAbortedError("Empty message. Commit cancelled.")
        raise UserAbortedError("Commit cancelled by user.")

    def commit(self, repo_path: str = ".", dry_run: bool = False, keep_placeholders: bool = False,
               yes: bool = True, log_dir: Optional[str] = None) -> None:
        """
        Generates a message for the staged changes and commits them.
        :param repo_path: Path to the git repository.
        :param dry_run: Print the message without committing.
        :param keep_placeholders: Keep "Functions Added:" style sections that only say "None".
        :param yes: Commit without asking; pass --noyes to review or edit the message first.
        :param log_dir: Directory for a session log file.
        """
        try:
            abs_repo_path, settings = self._prepare(repo_path, log_dir)
            message = self._generate(abs_repo_path, settings, keep_placeholders)

            print(f"\n{self.colors.OKGREEN}Commit message:{self.colors.ENDC}")
            print(f"{self.colors.BOLD}{message}{self.colors.ENDC}\n")

            if dry_run:
                self._log_and_print(f"{self.colors.WARNING}Dry run: nothing was committed.{self.colors.ENDC}")
                return
            if not yes:
                message = self._confirm(message)

            output = git.commit(abs_repo_path, message)
            if output.strip():
                print(output.strip())
            self._log_and_print(f"{self.colors.OKGREEN}Commit successful!{self.colors.ENDC}")
        except CommitAIError as e:
            self._fail(e)

    def message(self, repo_path: str = ".", keep_placeholders: bool = False, log_dir: Optional[str] = None) -> None:
        """Prints a generated message for the staged changes without committing."""
        try:
            abs_repo_path, settings = self._prepare(repo_path, log_dir)
            print(self._generate(abs_repo_path, settings, keep_placeholders))
        except CommitAIError as e:
            self._fail(e)

    def providers(self, repo_path: str = ".") -> None:
        """Shows where API keys were found and which provider would be used."""
        try:
            abs_repo_path, settings = self._prepare(repo_path, None)
            files = candidate_files(abs_repo_path, settings)
            print(f"{self.colors.HEADER}{self.colors.BOLD}Config files (scan order):{self.colors.ENDC}")
            for path in files:
                print(f"  - {path}")
            print(f"  - {ENVIRONMENT_SOURCE}")
            credentials = resolve_credentials(abs_repo_path, settings)
        except CommitAIError as e:
            self._fail(e)
            return
        for provider in (GEMINI, OPENAI):
            key = credentials.key_for(provider)
            source = credentials.sources.get(provider, "-")
            print(f"{self.colors.OKBLUE}{provider}:{self.colors.ENDC} {mask(key)} ({source})")
        fallback = credentials.fallback or "manual entry"
        print(f"{self.colors.OKGREEN}Provider:{self.colors.ENDC} {credentials.provider} (fallback: {fallback})")


def main():
    fire.Fire(GitAICommitter)


if __name__ == "__main__":
    main()
