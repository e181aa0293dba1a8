#!/usr/bin/env python3
"""
Seed a local SQLite data source for Chorus Catalog development.
Usage (from the repository root):
    python scripts/seed_demo_db.py            # create tables and views
    python scripts/seed_demo_db.py --shrink   # drop some relations so the next refresh marks them stale
Creates: scripts/demo.db
Register it with POST /api/data_sources {"db_type": "sqlite", "name": "demo", "file_path": "<abs path>"}.
"""
import random
import sqlite3
import sys
from datetime import datetime, timedelta
from pathlib import Path

DB_PATH = Path(__file__).parent / "demo.db"

DDL = [
    """
    CREATE TABLE IF NOT EXISTS customers (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT    NOT NULL,
        email       TEXT    UNIQUE NOT NULL,
        country     TEXT,
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS orders (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id     INTEGER REFERENCES customers(id),
        order_date      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        status          TEXT CHECK(status IN ('PENDING','SHIPPED','CANCELLED','DELIVERED')),
        total_amount    REAL
    )""",
    """
    CREATE TABLE IF NOT EXISTS user_events (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER REFERENCES customers(id),
        event_type  TEXT,
        occurred_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE VIEW IF NOT EXISTS delivered_orders AS
        SELECT * FROM orders WHERE status = 'DELIVERED'
    """,
    """
    CREATE VIEW IF NOT EXISTS customer_totals AS
        SELECT customer_id, SUM(total_amount) AS total FROM orders GROUP BY customer_id
    """,
]

SHRINK = [
    "DROP VIEW IF EXISTS customer_totals",
    "DROP TABLE IF EXISTS user_events",
]

STATUSES = ['PENDING', 'SHIPPED', 'CANCELLED', 'DELIVERED']
EVENT_TYPES = ['page_view', 'add_to_cart', 'purchase', 'search', 'login']


def seed():
    conn = sqlite3.connect(DB_PATH)
    cur  = conn.cursor()

    for stmt in DDL:
        cur.execute(stmt)

    for i in range(1, 51):
        cur.execute("INSERT OR IGNORE INTO customers(name, email, country, created_at) VALUES (?,?,?,?)",
                    (f"Customer {i}", f"user{i}@example.com",
                     random.choice(["US", "UK", "DE", "IN", "JP"]),
                     datetime.now() - timedelta(days=random.randint(10, 730))))

    for _ in range(200):
        cur.execute("INSERT INTO orders(customer_id,order_date,status,total_amount) VALUES (?,?,?,?)",
                    (random.randint(1, 50), datetime.now() - timedelta(days=random.randint(0, 365)),
                     random.choice(STATUSES), round(random.uniform(5, 500), 2)))

    for _ in range(300):
        cur.execute("INSERT INTO user_events(customer_id,event_type,occurred_at) VALUES (?,?,?)",
                    (random.randint(1, 50), random.choice(EVENT_TYPES),
                     datetime.now() - timedelta(minutes=random.randint(0, 10080))))

    conn.commit()
    conn.close()
    print(f"Demo data source seeded: {DB_PATH}")
    print("   Tables: customers, orders, user_events   Views: delivered_orders, customer_totals")


def shrink():
    conn = sqlite3.connect(DB_PATH)
    for stmt in SHRINK:
        conn.execute(stmt)
    conn.commit()
    conn.close()
    print("Dropped customer_totals and user_events; refresh the database to see them go stale.")


if __name__ == "__main__":
    if "--shrink" in sys.argv[1:]:
        shrink()
    else:
        seed()
