"""Supabase backed key-value store."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from coconut_nutrition.services.cache import KeyValueStore


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Supabase implementation storing text values in a key/value table."""

    client: Client
    table_name: str = "app_storage"

    def get_text(self, key: str) -> str | None:
        """Return the stored text for a key."""
        response = (
            self.client.table(self.table_name)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        value = response.data[0].get("value")
        return value if isinstance(value, str) else None

    def set_text(self, key: str, value: str) -> None:
        """Upsert the text stored for a key."""
        self.client.table(self.table_name).upsert(
            {
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()
