import pytest

from vector_ingest.exception.custom_exception import ConfigurationError
from vector_ingest.src.vector_store.store_id import VectorStoreConfig
from vector_ingest.utils.client_loader import ApiKeyManager
from vector_ingest.utils.config_loader import load_config


def test_bundled_config_loads():
    config = load_config()

    assert config["vector_store"]["upload_concurrency"] == 4
    assert "text/plain" in config["ingestion"]["allowed_mime_types"]


def test_config_path_override(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("vector_store:\n  poll_interval: 0.5\n")
    monkeypatch.setenv("CONFIG_PATH", str(path))

    assert load_config() == {"vector_store": {"poll_interval": 0.5}}


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / "nope.yaml"))


def test_vector_store_config_from_yaml_section():
    config = VectorStoreConfig.from_config(
        configured_store_id="vs-env",
        config={"vector_store": {"poll_interval": "0.5", "upload_concurrency": 8}},
    )

    assert config.configured_store_id == "vs-env"
    assert config.poll_interval == 0.5
    assert config.upload_concurrency == 8
    assert config.max_wait_time == 300.0


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr("vector_ingest.utils.client_loader.load_dotenv", lambda: None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ConfigurationError):
        ApiKeyManager()


def test_optional_store_id(monkeypatch):
    monkeypatch.setattr("vector_ingest.utils.client_loader.load_dotenv", lambda: None)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_VECTORSTORE_ID", "vs-env")

    keys = ApiKeyManager()

    assert keys.get("OPENAI_API_KEY") == "sk-test"
    assert keys.get("OPENAI_VECTORSTORE_ID") == "vs-env"
