"""Contraintes du schéma Supabase dont dépend le code applicatif."""
import re
from pathlib import Path

SCHEMA = (Path(__file__).resolve().parents[2] / "supabase" / "schema.sql").read_text(encoding="utf-8")


def _table(name: str) -> str:
    match = re.search(rf"create table if not exists public\.{name} \((.*?)\n\);", SCHEMA, re.S)
    assert match, name
    return match.group(1)


def test_order_status_only_allows_pending():
    orders = _table("orders")
    assert "check (status = 'pending')" in orders
    assert "shipped" not in orders
    assert "delivered" not in orders


def test_one_order_per_payment_intent():
    assert "on public.orders ((payment_result->>'id'))" in SCHEMA
    assert "create unique index if not exists orders_payment_result_id_key" in SCHEMA


def test_single_default_address_per_user():
    assert "on public.addresses (user_id) where is_default" in SCHEMA
