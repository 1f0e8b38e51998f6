"""
Tests for configuration, documents and byte sources.
"""

import pytest

from content_pipeline import (
    DEFAULT_NAMESPACE,
    DEFAULT_SERVICE_URL,
    ClientConfig,
    FileByteSource,
    InMemoryByteSource,
    InMemoryOnly,
    LocalFilesystem,
    StructuredDocument,
    TextDocument,
    UnsupportedEnvironmentError,
)
from content_pipeline.ingest import normalize_documents

ENV_VARS = [
    "CONTENT_PIPELINE_SERVICE_URL",
    "CONTENT_PIPELINE_NAMESPACE",
    "CONTENT_PIPELINE_TIMEOUT",
    "CONTENT_PIPELINE_POLL_INTERVAL",
    "CONTENT_PIPELINE_CERT_PATH",
    "CONTENT_PIPELINE_KEY_PATH",
    "CONTENT_PIPELINE_CA_PATH",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so teardown removes whatever load_dotenv writes
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestClientConfig:

    def test_defaults(self):
        config = ClientConfig()
        assert config.service_url == DEFAULT_SERVICE_URL
        assert config.namespace == DEFAULT_NAMESPACE
        assert config.namespace_url == f"{DEFAULT_SERVICE_URL}/namespaces/{DEFAULT_NAMESPACE}"
        assert config.to_dict()["MTLS"] is False

    def test_with_namespace_copies(self):
        config = ClientConfig(namespace="a")
        other = config.with_namespace("b")
        assert (config.namespace, other.namespace) == ("a", "b")

    def test_from_env(self, clean_env, monkeypatch):
        monkeypatch.setenv("CONTENT_PIPELINE_SERVICE_URL", "https://pipeline.example.com")
        monkeypatch.setenv("CONTENT_PIPELINE_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("CONTENT_PIPELINE_CERT_PATH", "/certs/client.pem")
        monkeypatch.setenv("CONTENT_PIPELINE_KEY_PATH", "/certs/client.key")

        config = ClientConfig.from_env()

        assert config.service_url == "https://pipeline.example.com"
        assert config.namespace == DEFAULT_NAMESPACE
        assert config.poll_interval == 0.5
        assert config.mtls.cert_path == "/certs/client.pem"
        assert config.mtls.ca_path is None

    def test_from_env_file(self, clean_env, monkeypatch):
        env_file = clean_env / "pipeline.env"
        env_file.write_text("CONTENT_PIPELINE_NAMESPACE=from-file\n")

        config = ClientConfig.from_env(str(env_file))

        assert config.namespace == "from-file"
        assert config.mtls is None


class TestDocuments:

    def test_normalizes_variants(self):
        docs = normalize_documents([
            TextDocument(text="one"),
            StructuredDocument(text="two", labels={"lang": "en"}, id="doc-2"),
        ])

        assert docs[0] == StructuredDocument(text="one", labels={"mime_type": "text/plain"})
        assert docs[1].labels == {"lang": "en", "mime_type": "text/plain"}
        assert docs[1].id == "doc-2"

    def test_single_document(self):
        assert len(normalize_documents(TextDocument(text="solo"))) == 1

    def test_caller_labels_not_mutated(self):
        original = StructuredDocument(text="x", labels={"a": "b"})
        normalize_documents(original)
        assert original.labels == {"a": "b"}


class TestByteSources:

    @pytest.mark.asyncio
    async def test_file_source(self, tmp_path):
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF")

        source = LocalFilesystem().resolve(str(path))

        assert isinstance(source, FileByteSource)
        assert source.filename == "report.pdf"
        assert await source.read() == b"%PDF"

    @pytest.mark.asyncio
    async def test_in_memory_source_passes_through(self):
        source = InMemoryByteSource.from_text("hello")
        assert InMemoryOnly().resolve(source) is source
        assert await source.read() == b"hello"

    def test_in_memory_environment_rejects_paths(self):
        with pytest.raises(UnsupportedEnvironmentError):
            InMemoryOnly().resolve("/tmp/anything")

    def test_rejects_other_inputs(self):
        with pytest.raises(TypeError):
            LocalFilesystem().resolve(42)
