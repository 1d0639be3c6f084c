from supabase import create_client, Client, ClientOptions
from naitai.config.settings import settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Client with the service role key; used to verify bearer tokens."""
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_user_client(cls, token: str) -> Client:
        """Client acting as the caller: anon key plus their JWT, so row-level policies apply."""
        return create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
            options=ClientOptions(headers={"Authorization": f"Bearer {token}"}),
        )

    @classmethod
    def reset_client(cls):
        cls._client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()
