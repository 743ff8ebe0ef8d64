# aclinit/config.py
import os
from typing import Optional

from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings(BaseModel):
    # General settings
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Consul server connection settings
    # Comma separated host names or IPs of the Consul servers
    server_addresses: str = os.getenv("CONSUL_SERVER_ADDRESSES", "")
    http_port: int = int(os.getenv("CONSUL_HTTP_PORT", "8500"))
    use_tls: bool = _env_flag("CONSUL_USE_TLS", "false")
    ca_file: Optional[str] = os.getenv("CONSUL_CACERT_FILE")

    # Timeouts (seconds)
    # The bootstrap call can take several seconds to commit, so it gets its own long timeout
    api_timeout: float = float(os.getenv("CONSUL_API_TIMEOUT", "5"))
    bootstrap_timeout: float = float(os.getenv("CONSUL_BOOTSTRAP_TIMEOUT", "300"))

    # Retry loop
    retry_interval: float = float(os.getenv("RETRY_INTERVAL", "1"))

    # Bootstrap token persistence
    bootstrap_token_secret_name: str = os.getenv("BOOTSTRAP_TOKEN_SECRET_NAME", "consul-bootstrap-acl-token")
    bootstrap_token_file: Optional[str] = os.getenv("BOOTSTRAP_TOKEN_FILE")
    database_url: str = os.getenv("DATABASE_URL", "sqlite://acl-init.sqlite3")

    # Server token provisioning
    # Only enable when the Consul servers run alongside this job
    set_server_tokens: bool = _env_flag("SET_SERVER_TOKENS", "true")

    # Agent policy rule rendering inputs
    enable_namespaces: bool = _env_flag("ENABLE_NAMESPACES", "false")
    enable_partitions: bool = _env_flag("ENABLE_PARTITIONS", "false")
    partition_name: str = os.getenv("PARTITION_NAME", "default")

    @property
    def scheme(self) -> str:
        return "https" if self.use_tls else "http"


settings = Settings()  # Instantiate configuration
