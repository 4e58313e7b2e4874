from typing import Optional
from pydantic import BaseModel, ConfigDict


class InventoryConfig(BaseModel):
    name: str = "av-inventory"
    log_level: str = "INFO"
    logs_dir: Optional[str] = None
    dictionary_path: Optional[str] = None
    collect_processes: bool = True
    collect_services: bool = True
    api_host: str = "127.0.0.1"
    api_port: int = 8080

    model_config = ConfigDict(extra="allow")
