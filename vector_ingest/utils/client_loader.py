import os
import sys

from dotenv import load_dotenv
from openai import AsyncOpenAI

from vector_ingest.exception.custom_exception import ConfigurationError
from vector_ingest.logger import GLOBAL_LOGGER as log
from vector_ingest.utils.config_loader import get_config


class ApiKeyManager:
    REQUIRED = ["OPENAI_API_KEY"]
    OPTIONAL = ["OPENAI_VECTORSTORE_ID"]

    def __init__(self):
        load_dotenv()
        self.keys = {}

        for k in self.REQUIRED:
            if val := os.getenv(k):
                self.keys[k] = val
                log.info("Loaded %s from env", k)
            else:
                log.error("Missing required API key: %s", k)

        if len(self.keys) != len(self.REQUIRED):
            raise ConfigurationError("Missing API Keys", sys)

        for k in self.OPTIONAL:
            if val := os.getenv(k):
                self.keys[k] = val
                log.info("Loaded %s from env", k)

    def get(self, key: str) -> str | None:
        return self.keys.get(key)


class ClientLoader:
    """
    Responsible for:
    - Validating the provider credentials
    - Building the async provider client
    - Exposing the vector-store section of the YAML config
    """

    def __init__(self):
        self.api_key_mgr = ApiKeyManager()
        self.config = get_config()
        log.info("YAML config loaded | sections=%s", list(self.config.keys()))

    @property
    def configured_store_id(self) -> str | None:
        """Pre-provisioned store id supplied out-of-band, if any."""
        return self.api_key_mgr.get("OPENAI_VECTORSTORE_ID")

    def load_client(self) -> AsyncOpenAI:
        log.info("Loading async provider client")
        return AsyncOpenAI(api_key=self.api_key_mgr.get("OPENAI_API_KEY"))
