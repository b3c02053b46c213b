#!/usr/bin/env python3
"""
Seed script for a demo asset register.

Creates an admin, two employees and a handful of assets, then walks one
laptop through a few handovers so the history view has something to show.

Run with: python scripts/seed_demo.py
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from assettrail.config import config
from assettrail.records import ASSETS, USERS, User
from assettrail.services import AssetLifecycleService, HistoryQueryService
from assettrail.store import EQ, Filter, get_entity_store


DEMO_USERS = [
    User(user_id="demo-admin", fullname="Dana Admin", email="admin@demo.local", role="admin"),
    User(user_id="demo-alex", fullname="Alex Rivera", email="alex@demo.local"),
    User(user_id="demo-sam", fullname="Sam Okafor", email="sam@demo.local"),
]

DEMO_ASSETS = [
    {"name": "ThinkPad T14", "serial_number": "LT-0001", "category_id": "laptop"},
    {"name": "Dell U2720Q", "serial_number": "MN-0001", "category_id": "monitor"},
    {"name": "iPhone 15", "serial_number": "PH-0001", "category_id": "phone", "status": "maintenance"},
    {"name": "USB-C Dock", "serial_number": "DK-0001", "category_id": "accessory", "quantity": 5},
]


def seed_users(store):
    for user in DEMO_USERS:
        if store.get(USERS, user.user_id) is None:
            store.save(user)
            print(f"[seed] Created user: {user.fullname}")
        else:
            print(f"[seed] User exists: {user.fullname}")


def seed_assets(service, admin_id):
    assets = {}
    for data in DEMO_ASSETS:
        existing = service.store.find(ASSETS, filters=[Filter("serial_number", EQ, data["serial_number"])], limit=1)
        if existing:
            print(f"[seed] Asset exists: {data['serial_number']}")
            assets[data["serial_number"]] = existing[0]
            continue
        asset = service.create_asset(acting_admin_id=admin_id, **data)
        assets[asset.serial_number] = asset
        print(f"[seed] Created asset: {asset.name} ({asset.serial_number})")
    return assets


def seed_handovers(service, laptop, admin_id):
    if HistoryQueryService(service.store).events_for(laptop.asset_id):
        print("[seed] Laptop already has history, skipping handovers")
        return
    service.assign(laptop.asset_id, "demo-alex", "2024-01-10", acting_admin_id=admin_id)
    service.assign(laptop.asset_id, "demo-sam", "2024-02-01", acting_admin_id=admin_id)
    service.change_status(laptop.asset_id, "maintenance", acting_admin_id=admin_id)
    service.change_status(laptop.asset_id, "free", acting_admin_id=admin_id)
    print("[seed] Recorded laptop handovers")


def main():
    """Run seed script."""
    print(f"[seed] Seeding demo data into '{config.ENTITY_STORE}' store...")

    if config.ENTITY_STORE == "postgres":
        from assettrail.db.postgres import init_db
        init_db()

    store = get_entity_store()
    service = AssetLifecycleService(store)
    admin_id = DEMO_USERS[0].user_id

    seed_users(store)
    assets = seed_assets(service, admin_id)
    seed_handovers(service, assets["LT-0001"], admin_id)

    print("[seed] Done!")


if __name__ == "__main__":
    main()
