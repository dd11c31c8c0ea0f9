#!/usr/bin/env python3
"""
Notification Self-Test Script

Sends the self-test announcement to a phone number or email address using
the configuration from the environment / .env file, then prints the
channel status and the delivery result.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.api.main import build_notification_manager


async def run_self_test(contact: str, method: str) -> bool:
    manager = build_notification_manager()

    print("📋 Channel status:")
    print(json.dumps(manager.get_status(), indent=2, default=str))

    print(f"\n📨 Sending test notification to {contact} (method: {method})...")
    result = await manager.test_notification(contact, method)
    print(json.dumps(result, indent=2, default=str))

    if result.get("success"):
        print("\n✅ Notification system is working")
    else:
        print(f"\n❌ Test notification failed: {result.get('error') or result.get('reason')}")
    return bool(result.get("success"))


def main():
    parser = argparse.ArgumentParser(description="Send a test patient notification")
    parser.add_argument("contact", help="Phone number or email address to notify")
    parser.add_argument(
        "--method",
        choices=["auto", "sms", "email"],
        default="auto",
        help="Channel to test (default: auto)"
    )
    args = parser.parse_args()

    ok = asyncio.run(run_self_test(args.contact, args.method))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
