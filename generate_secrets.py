#!/usr/bin/env python3
"""
Generate a SECRET_KEY for Podium
Sessions are bearer tokens stored in the database, so this is the only secret
the application needs besides mail credentials.
"""

import secrets


def generate_secrets():
    print("🔐 Generating a secret key for Podium...")
    print("=" * 50)
    print(f"SECRET_KEY={secrets.token_urlsafe(32)}")
    print("=" * 50)
    print("📝 Add this line to your .env file and keep it out of version control")


if __name__ == "__main__":
    generate_secrets()
