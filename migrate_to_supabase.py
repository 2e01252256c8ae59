#!/usr/bin/env python3
"""
One-time migration script to move locally stored prospects to Supabase.

Usage:
    python migrate_to_supabase.py

This will:
1. Load maps_prospector_db.json from ~/.maps_prospector/ (or PROSPECTOR_DATA_DIR)
2. Upsert every prospect into the Supabase `prospects` table, keeping timestamps
3. Read the table back and compare counts
"""

import sys
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv
from supabase import Client, create_client

# Load environment variables
load_dotenv()

# Add project to path
sys.path.insert(0, str(Path(__file__).parent))

from prospector.config import Settings, configure_logging
from prospector.models.prospects import Prospect
from prospector.services.prospect_store import (
    LocalProspectStore,
    PROSPECTS_TABLE_SQL,
    TABLE_NAME,
)


def migrate_prospects(client: Client, prospects: List[Prospect]) -> Tuple[int, int]:
    """
    Upsert prospects by id, keeping each record's own timestamp.

    Returns:
        Tuple of (success_count, error_count)
    """
    success_count = 0
    error_count = 0

    for i, prospect in enumerate(prospects, 1):
        if i % 10 == 0:
            print(f"  Progress: {i}/{len(prospects)}...")
        try:
            client.table(TABLE_NAME).upsert(prospect.to_record(), on_conflict="id").execute()
            success_count += 1
        except Exception as e:
            print(f"  Error migrating prospect {prospect.id}: {e}")
            error_count += 1

    return success_count, error_count


def main():
    """Main migration function."""
    print("=" * 60)
    print("Maps Prospector - Migrate Local Prospects to Supabase")
    print("=" * 60)

    settings = Settings.from_env()
    configure_logging(settings.log_level)

    local = LocalProspectStore(settings.data_dir)
    if not local.storage_path.exists():
        print(f"\nNo local prospects found at: {local.storage_path}")
        print("Nothing to migrate.")
        return

    prospects = local.get_prospects()
    print(f"\nLoaded {len(prospects)} prospects from {local.storage_path}")

    if not settings.backend_configured:
        print("\nSupabase is not configured.")
        print("Make sure SUPABASE_URL and SUPABASE_KEY are set in .env")
        return

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
        print(f"\nConnected to Supabase project {settings.project_id}")
    except Exception as e:
        print(f"\nError connecting to Supabase: {e}")
        print("If the table does not exist yet, run this in the SQL editor:")
        print(PROSPECTS_TABLE_SQL)
        return

    print("\nMigrating prospects...")
    success_count, error_count = migrate_prospects(client, prospects)

    print("\nMigration complete:")
    print(f"  - Success: {success_count}")
    print(f"  - Errors: {error_count}")

    # Verify migration
    print("\nVerifying migration...")
    try:
        rows = client.table(TABLE_NAME).select("id").execute().data or []
    except Exception as e:
        print(f"Could not read back from Supabase: {e}")
        return
    remote_ids = {row["id"] for row in rows}
    missing = [p.id for p in prospects if p.id not in remote_ids]

    print(f"Supabase now contains {len(remote_ids)} prospects")

    if not missing:
        print("\n✅ Migration successful!")
        print("\nYou can safely delete the local file if desired:")
        print(f"  rm {local.storage_path}")
    else:
        print(f"\n⚠️  {len(missing)} prospects are missing. Please verify in Supabase dashboard.")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
