"""Commit message generation with the provider fallback chain.

preferred provider -> other provider (if its key is known) -> manual entry
"""

import enum
import logging
from typing import Callable, List, Optional

import requests

from commit_ai.config import Credentials, Settings
from commit_ai.errors import ProviderError, UserAbortedError
from commit_ai.postprocess import clean_message
from commit_ai.prompt import build_prompt
from commit_ai.providers import create_client

logger = logging.getLogger("commit_ai")


class State(enum.Enum):
    TRY_PREFERRED = "try_preferred"
    TRY_FALLBACK = "try_fallback"
    MANUAL = "manual"
    DONE = "done"
    ABORTED = "aborted"


class MessageGenerator:
    """Drives one diff through the fallback chain to a commit message.

    `manual_entry` is called with the list of provider errors once every
    provider has failed; it returns the user's message, or None to abort.
    """

    def __init__(self, credentials: Credentials, settings: Settings,
                 manual_entry: Optional[Callable[[List[ProviderError]], Optional[str]]] = None,
                 strip_placeholders: bool = True, session: Optional[requests.Session] = None):
        self.credentials = credentials
        self.settings = settings
        self.manual_entry = manual_entry
        self.strip_placeholders = strip_placeholders
        self.session = session
        self.state = State.TRY_PREFERRED
        self.errors: List[ProviderError] = []
        self.provider_used: Optional[str] = None

    def _transition(self, state: State) -> None:
        logger.info(f"Message generation: {self.state.name} -> {state.name}")
        self.state = state

    def _ask(self, provider: str, prompt: str) -> Optional[str]:
        client = create_client(provider, self.credentials, self.settings, session=self.session)
        try:
            text = client.generate(prompt)
        except ProviderError as e:
            logger.warning(str(e))
            self.errors.append(e)
            return None
        self.provider_used = provider
        return clean_message(text, strip_placeholders=self.strip_placeholders)

    def generate(self, diff_text: str) -> str:
        """Returns a non-empty commit message or raises.

        ExtractionError from a provider is not recovered. UserAbortedError is
        raised when manual entry is declined.
        """
        prompt = build_prompt(diff_text)
        self.state = State.TRY_PREFERRED
        self.errors = []
        self.provider_used = None

        message = self._ask(self.credentials.provider, prompt)
        if message:
            self._transition(State.DONE)
            return message

        fallback = self.credentials.fallback
        if fallback:
            self._transition(State.TRY_FALLBACK)
            message = self._ask(fallback, prompt)
            if message:
                self._transition(State.DONE)
                return message

        self._transition(State.MANUAL)
        message = self.manual_entry(list(self.errors)) if self.manual_entry else None
        message = (message or "").strip()
        if not message:
            self._transition(State.ABORTED)
            raise UserAbortedError("No commit message was generated or entered. Aborting.")
        self.provider_used = "manual"
        self._transition(State.DONE)
        return message
