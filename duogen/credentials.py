from typing import Callable, Optional

from .logger import logger, mask_secret


KeySelector = Callable[[], Optional[str]]


class CredentialStore:
    """
    Holds the API key used by the content provider.

    The selector is the host's way of asking the learner for a key (a dialog
    in the desktop app). Without one there is nothing to prompt with, so the
    store trusts that the key comes from the environment.
    """

    def __init__(self, api_key: Optional[str] = None, selector: Optional[KeySelector] = None):
        self.api_key = api_key or None
        self.selector = selector

    def has_credential(self) -> bool:
        if self.selector is None:
            return True
        return bool(self.api_key)

    def prompt_selection(self) -> None:
        """Ask the selector for a key; blocks until it returns."""
        if self.selector is None:
            logger.env("No key selector available, relying on environment")
            return
        logger.ui("Prompting for API key...")
        selected = self.selector()
        if selected and selected.strip():
            self.api_key = selected.strip()
            logger.env_success(f"API key selected: {mask_secret(self.api_key)}")
        else:
            logger.warning("Key selection cancelled or empty")
