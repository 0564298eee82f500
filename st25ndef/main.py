"""Application wiring for the ST25 NDEF tool."""

import logging
from typing import Optional

from .config import load_config, Config
from .nfc.session import MemoryTagSession, TagSession
from .services.tag_service import TagService

logger = logging.getLogger(__name__)


class Application:
    """Main application class tying configuration, session and service together."""

    def __init__(self, config: Optional[Config] = None, session: Optional[TagSession] = None):
        """
        Initialize application.

        Args:
            config: Optional configuration (will load from env if not provided)
            session: Optional tag session (default: image file from config)
        """
        if config is None:
            config = load_config()

        self.config = config
        self.config.setup_logging()
        logger.debug(f"Configuration: {self.config}")

        self.session: Optional[TagSession] = session
        self.tag_service: Optional[TagService] = None

        self._initialized = False

    def initialize(self) -> None:
        """Initialize all application components."""
        if self._initialized:
            logger.warning("Application already initialized")
            return

        if self.session is None:
            logger.info(f"Using tag image: {self.config.tag_image}")
            self.session = MemoryTagSession(path=self.config.tag_image)

        self.tag_service = TagService(
            session=self.session,
            language=self.config.text_language,
            encoding=self.config.encoding,
        )

        self._initialized = True
        logger.debug("All components initialized successfully")

    def format_tag(self, writable: bool = True) -> MemoryTagSession:
        """
        Replace the configured tag image with a freshly formatted one.

        Raises:
            ValueError: If no tag image path is configured
        """
        if not self.config.tag_image:
            raise ValueError("No tag image configured (set ST25_TAG_IMAGE or pass --image)")

        session = MemoryTagSession.blank(
            size=self.config.image_size,
            writable=writable,
            path=self.config.tag_image,
        )
        handle = session.poll(timeout=self.config.poll_timeout)
        session.finish(handle)

        self.session = session
        if self.tag_service is not None:
            self.tag_service.session = session

        logger.info(f"Formatted tag image {self.config.tag_image} ({self.config.image_size} bytes)")
        return session

    def cleanup(self) -> None:
        """Clean up application resources."""
        self.tag_service = None
        self._initialized = False
        logger.debug("Cleanup complete")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
