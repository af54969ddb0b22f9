"""
Seed Bootstrap Payment Link

Creates the standalone payment link checked by GET /api/payment-link/{token}.
The application also seeds it at start-up when BOOTSTRAP_PAYMENT_TOKEN is set;
this script does the same without starting the server.

Usage:
    python scripts/seed_payment_link.py [TOKEN]

Without TOKEN, BOOTSTRAP_PAYMENT_TOKEN is used; if that is unset a new random
token is generated and printed.
"""

import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from zorvixe.core.config import settings
from zorvixe.core.database import async_session_maker, close_db
from zorvixe.modules.clients.service import ensure_payment_link
from zorvixe.modules.links.service import generate_link_token


async def seed_payment_link(token: str) -> None:
    """Create the bootstrap payment link if it doesn't exist."""
    async with async_session_maker() as db:
        payment_link = await ensure_payment_link(db, token)

    print("Bootstrap payment link ready")
    print(f"  ID: {payment_link.id}")
    print(f"  Active: {payment_link.active}")
    print(f"  URL: {settings.public_base_url.rstrip('/')}/payment-link/{token}")

    await close_db()


if __name__ == "__main__":
    token = sys.argv[1] if len(sys.argv) > 1 else settings.bootstrap_payment_token
    if not token:
        token = generate_link_token()
        print(f"Generated token: {token}")
    asyncio.run(seed_payment_link(token))
