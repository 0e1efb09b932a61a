# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_valkey_url,
    get_llm_config,
    get_media_config,
)
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.llm_client import LLMClient, LLMError, LLMResponse
from clients.media_client import MediaClient, MediaUploadError
