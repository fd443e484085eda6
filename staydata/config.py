from pydantic import BaseModel
from pydantic_settings import BaseSettings

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class QueryHashes(BaseModel):
    """Persisted-query hashes, one per GraphQL operation."""

    stays_search: str = "d4d9503616dc72ab220ed8dcf17f166816dccb2593e7b4625c91c3fce3a3b3d6"
    stays_pdp_sections: str = "80c7889b4b0027d99ffea830f6c0d4911a6e863a957cbe1044823f0fc746bf1f"
    stays_pdp_reviews: str = "dec1c8061483e78373602047450322fd474e79ba9afa8d3dbbc27f504030f91d"
    pdp_availability_calendar: str = "8f08e03c7bd16fcad3c92a3592c19a8b559a0d0855a84028d1163d4733ed9ade"
    get_user_profile: str = "a56d8909f271740ccfef23dd6c34d098f194f4a6e7157f244814c5610b8ad76a"


class CacheSettings(BaseModel):
    max_entries: int = 500
    search_ttl_secs: int = 900
    detail_ttl_secs: int = 3600
    reviews_ttl_secs: int = 3600
    calendar_ttl_secs: int = 1800
    host_profile_ttl_secs: int = 3600


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "STAYDATA_",
        "env_nested_delimiter": "__",
    }

    log_level: str = "INFO"
    base_url: str = "https://www.airbnb.com"
    user_agent: str = _DEFAULT_USER_AGENT
    rate_limit_per_second: float = 0.5
    request_timeout_secs: float = 30.0
    max_retries: int = 2
    retry_delay_secs: float = 2.0
    graphql_enabled: bool = True
    api_key_cache_secs: int = 86400
    hashes: QueryHashes = QueryHashes()
    cache: CacheSettings = CacheSettings()
