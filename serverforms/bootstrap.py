"""
Startup and shutdown sequencing.

Components are initialized in order; the first failure is logged with the
component name and stops the sequence (nothing is retried):

    Configuration -> Forms Validation -> Commands
"""

import logging
from typing import Callable, Optional

from serverforms.commands import CommandRegistry
from serverforms.core.config_loader import ConfigLoader
from serverforms.core.session_engine import SessionEngine
from serverforms.persistence import AnswerStore
from serverforms.utils.identity import IdentityResolver

logger = logging.getLogger(__name__)


class ServerForms:
    """Owns every long-lived component of the forms system"""

    def __init__(self, config_path: str = "config/ServerForms.json",
                 answers_dir: str = "mods/FormAnswers",
                 usercache_path: str = "usercache.json"):
        self.config_path = config_path
        self.answers_dir = answers_dir
        self.usercache_path = usercache_path

        self.config_loader: Optional[ConfigLoader] = None
        self.answer_store: Optional[AnswerStore] = None
        self.identity_resolver: Optional[IdentityResolver] = None
        self.engine: Optional[SessionEngine] = None
        self.commands: Optional[CommandRegistry] = None
        self.initialized = False

        self._raw_config = None

    def initialize(self) -> bool:
        """
        Run the startup sequence.

        Returns:
            bool: True if every component initialized
        """
        logger.info("Server Forms is initializing...")

        if not self.initialize_component("Configuration", self._load_configuration):
            return False
        if not self.initialize_component("Forms Validation", self._validate_forms):
            return False
        if not self.initialize_component("Commands", self._register_commands):
            return False

        self.initialized = True
        logger.info("Server Forms has initialized successfully.")
        return True

    def initialize_component(self, component_name: str, initializer: Callable[[], None]) -> bool:
        """
        Run one initialization step.

        Returns:
            bool: False if the step raised (error logged with traceback)
        """
        try:
            initializer()
            logger.info(f"{component_name} initialized successfully.")
            return True
        except Exception as e:
            logger.exception(f"Failed to initialize {component_name}: {e}")
            return False

    def shutdown(self):
        """Log shutdown; sessions still open are lost with the process"""
        logger.info("The server is stopping. Server Forms is shutting down...")
        if self.engine is None:
            return

        abandoned = self.engine.active_session_count()
        if abandoned:
            logger.warning(f"{abandoned} form session(s) still active at shutdown; their answers are discarded")

    def _load_configuration(self):
        self.config_loader = ConfigLoader(self.config_path)
        self._raw_config = self.config_loader.read(regenerate=True)

    def _validate_forms(self):
        self.config_loader.install(self._raw_config)
        self._raw_config = None

    def _register_commands(self):
        self.answer_store = AnswerStore(self.answers_dir)
        self.identity_resolver = IdentityResolver(self.usercache_path)
        self.engine = SessionEngine(self.answer_store, self.config_loader)
        self.commands = CommandRegistry(
            self.engine, self.config_loader, self.answer_store, self.identity_resolver
        )
