import logging
from pathlib import Path
from typing import Iterable, Optional

from .config import ConfigManager
from .inventory.checker import PresenceChecker
from .inventory.collectors import HostCollector
from .inventory.loader import ServiceDictionary, load_default_dictionary, load_dictionary
from .inventory.models import PresenceReport


class InventoryAgent:
    """Wires configuration, logging, the service dictionary and host collection together."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        dictionary_path: Optional[str] = None,
    ):
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.get_config()

        # Setup logging
        self._setup_logging()
        self.logger = logging.getLogger(__name__)

        # Load the reference table; an explicit path overrides the config
        path = dictionary_path or self.config.dictionary_path
        self.dictionary: ServiceDictionary = (
            load_dictionary(path) if path else load_default_dictionary()
        )
        self.checker = PresenceChecker(self.dictionary)
        self.collector = HostCollector(
            collect_processes=self.config.collect_processes,
            collect_services=self.config.collect_services,
        )

    def _setup_logging(self):
        """Setup logging configuration"""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        handlers = [logging.StreamHandler()]
        if self.config.logs_dir:
            log_dir = Path(self.config.logs_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_dir / 'inventory.log'))

        logging.basicConfig(level=log_level, format=log_format, handlers=handlers)

    def check(self, observed: Iterable[str]) -> PresenceReport:
        """Check an observed list of process or service names"""
        return self.checker.check(observed)

    def scan_host(self) -> PresenceReport:
        """Collect running processes and services on this host and check them"""
        observation = self.collector.collect()
        return self.checker.check_host(observation)

    def create_app(self):
        """Build the FastAPI application serving the inventory routes"""
        from fastapi import FastAPI

        from .inventory.inventory_monitor import create_inventory_router

        app = FastAPI(title="AV Service Inventory")

        @app.get("/health")
        async def health_check():
            return {
                "status": "healthy",
                "vendors": len(self.dictionary),
                "digest": self.dictionary.digest,
            }

        app.include_router(create_inventory_router(self.dictionary, self.collector))
        return app

    def serve(self, host: Optional[str] = None, port: Optional[int] = None):
        """Run the HTTP API until interrupted"""
        import uvicorn

        host = host or self.config.api_host
        port = port or self.config.api_port
        self.logger.info(f"Starting inventory API on {host}:{port}")
        uvicorn.run(self.create_app(), host=host, port=port, log_level=self.config.log_level.lower())
