"""
Compare a user's reward balance with their reward_transactions ledger.

Profile and ledger writes after a chat reply are best-effort, so the two can
drift. This script only reports; it never writes.

Usage:
    cd backend
    SUPABASE_URL=... SUPABASE_SERVICE_KEY=... python scripts/audit_ledger.py <user_id>
"""
import os
import sys

# Add project root to path so we can import gemchat modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gemchat.db import get_client, get_profile
from gemchat.engine.rewards import summarize_ledger


PAGE_SIZE = 1000  # Supabase row limit per request


def fetch_all_transactions(db, user_id: str) -> list[dict]:
    """Fetch all ledger rows for a user in pages."""
    rows = []
    offset = 0
    while True:
        res = (
            db.table("reward_transactions")
            .select("points_change, transaction_type, created_at")
            .eq("user_id", user_id)
            .order("created_at")
            .range(offset, offset + PAGE_SIZE - 1)
            .execute()
        )
        batch = res.data or []
        rows.extend(batch)
        print(f"  fetched {len(rows)} transactions...", end="\r")
        if len(batch) < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    print(f"  fetched {len(rows)} transactions total          ")
    return rows


def run(user_id: str) -> int:
    print(f"\n🔍 Auditing reward ledger for user: {user_id[:8]}...\n")

    db = get_client()
    profile = get_profile(db, user_id)
    if profile is None:
        print(f"❌ Profile not found: {user_id}")
        return 1

    balance = profile.get("reward_points") or 0
    print(f"  Profile balance: {balance}")
    print(f"  Total messages:  {profile.get('total_messages') or 0}")
    print(f"  Daily streak:    {profile.get('daily_streak') or 0}")

    print("\n  Fetching ledger...")
    summary = summarize_ledger(fetch_all_transactions(db, user_id))

    print(f"\n  Ledger ({summary['entries']} entries):")
    for kind, points in sorted(summary["by_type"].items()):
        print(f"    {kind}: {points:+d}")
    print(f"    net: {summary['net_points']:+d}")

    # Balances granted outside the chat handler (e.g. at signup) show up here too
    drift = balance - summary["net_points"]
    if drift == 0:
        print("\n✅ Balance matches ledger.\n")
    else:
        print(f"\n⚠️  Balance differs from ledger by {drift:+d} points.\n")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/audit_ledger.py <user_id>")
        sys.exit(1)

    sys.exit(run(sys.argv[1]))
