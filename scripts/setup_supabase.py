#!/usr/bin/env python3
"""Supabase database setup script for the sale audit pipeline.

This script outputs the SQL needed to create the sales ledger in Supabase.
Copy the SQL output and run it in the Supabase SQL Editor.

Usage:
    # Print all SQL to console
    python scripts/setup_supabase.py

    # Print SQL and save to file
    python scripts/setup_supabase.py --output setup.sql

    # Verify the table exists
    python scripts/setup_supabase.py --verify

Tables Created:
    - sales: One record per processed order, keyed by order_id
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime

# =============================================================================
# SQL Schema Definitions
# =============================================================================

SCHEMA_SQL = """
-- =============================================================================
-- Sale Audit Database Schema for Supabase
-- =============================================================================
-- Generated: {generated_at}
--
-- Instructions:
-- 1. Open your Supabase project dashboard
-- 2. Go to SQL Editor
-- 3. Paste this entire script
-- 4. Click "Run" to execute
-- =============================================================================

-- =============================================================================
-- Table: sales
-- =============================================================================
-- One row per processed order. order_id is the idempotency key: the intake
-- workflow upserts on it, so a re-sent notification overwrites its row.
-- =============================================================================

CREATE TABLE IF NOT EXISTS sales (
    -- Primary key (storefront sale id or ORD-<epoch millis>)
    order_id TEXT PRIMARY KEY,

    -- Customer
    customer_email TEXT,
    business_url TEXT NOT NULL DEFAULT 'Not provided',

    -- Money
    amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
    currency CHAR(3) NOT NULL DEFAULT 'ZAR',

    -- Workflow outcome
    audit_generated BOOLEAN NOT NULL DEFAULT false,
    email_delivered BOOLEAN NOT NULL DEFAULT false,

    -- Server-assigned write time
    "timestamp" TIMESTAMPTZ NOT NULL DEFAULT NOW(),

    -- Constraints
    CONSTRAINT sales_order_id_not_empty CHECK (order_id <> '')
);

-- Indexes for sales table
CREATE INDEX IF NOT EXISTS idx_sales_timestamp ON sales("timestamp" DESC);
CREATE INDEX IF NOT EXISTS idx_sales_email_delivered ON sales(email_delivered);

-- Comments
COMMENT ON TABLE sales IS 'Sale ledger: one record per processed storefront order';
COMMENT ON COLUMN sales.order_id IS 'Storefront sale id or generated ORD-<epoch millis>';
COMMENT ON COLUMN sales.business_url IS 'Customer business URL without scheme or www.';
COMMENT ON COLUMN sales.amount IS 'Price in major units (minor units / 100)';
COMMENT ON COLUMN sales.audit_generated IS 'Report generation was attempted (fallback included)';
COMMENT ON COLUMN sales.email_delivered IS 'Audit email accepted by the provider';
COMMENT ON COLUMN sales."timestamp" IS 'Assigned by the database on every write';


-- =============================================================================
-- Trigger: server-assigned timestamp
-- =============================================================================
-- Clients never send "timestamp"; an upsert of an existing order must still
-- move it, so it is set here on INSERT and UPDATE.
-- =============================================================================

CREATE OR REPLACE FUNCTION set_sales_timestamp()
RETURNS TRIGGER AS $$
BEGIN
    NEW."timestamp" = NOW();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS sales_set_timestamp ON sales;
CREATE TRIGGER sales_set_timestamp
    BEFORE INSERT OR UPDATE ON sales
    FOR EACH ROW
    EXECUTE FUNCTION set_sales_timestamp();


-- =============================================================================
-- Row Level Security
-- =============================================================================
-- The API uses the service role key, which bypasses RLS. Enabling RLS with no
-- policies keeps the table closed to the anon key.
-- =============================================================================

ALTER TABLE sales ENABLE ROW LEVEL SECURITY;
"""

DROP_SQL = """
-- =============================================================================
-- WARNING: This will DELETE ALL DATA in the sales ledger!
-- =============================================================================

DROP TRIGGER IF EXISTS sales_set_timestamp ON sales;
DROP FUNCTION IF EXISTS set_sales_timestamp() CASCADE;
DROP TABLE IF EXISTS sales CASCADE;
"""

REQUIRED_TABLES = ["sales"]


# =============================================================================
# Verification Functions
# =============================================================================

def verify_tables() -> dict:
    """Verify that all required tables exist in Supabase.

    Returns:
        Dictionary with verification results.
    """
    try:
        from supabase import create_client
        from src.config.settings import get_settings

        settings = get_settings()
        supabase = create_client(
            settings.supabase_url,
            settings.supabase_key.get_secret_value(),
        )
    except Exception as e:
        return {
            'success': False,
            'error': str(e),
        }

    results = {
        'success': True,
        'tables': {},
        'missing': [],
        'errors': [],
    }

    for table in REQUIRED_TABLES:
        try:
            response = supabase.table(table).select('order_id').limit(1).execute()
            results['tables'][table] = {
                'exists': True,
                'accessible': True,
                'row_count': len(response.data) if response.data else 0,
            }
        except Exception as e:
            error_str = str(e)
            results['success'] = False
            if 'does not exist' in error_str.lower() or 'relation' in error_str.lower():
                results['tables'][table] = {'exists': False, 'accessible': False}
                results['missing'].append(table)
            else:
                results['tables'][table] = {
                    'exists': 'unknown',
                    'accessible': False,
                    'error': error_str[:100],
                }
                results['errors'].append(f"{table}: {error_str[:100]}")

    return results


def print_verification_results(results: dict) -> None:
    """Print verification results in a readable format."""
    print("\n" + "=" * 70)
    print("Supabase Table Verification Results")
    print("=" * 70)

    if 'error' in results:
        print(f"\nError: {results['error']}")
        return

    print(f"\nOverall Status: {'PASS' if results['success'] else 'FAIL'}")
    print("-" * 70)

    print("\nTable Status:")
    for table, info in results['tables'].items():
        status = "OK" if info.get('exists') is True else "MISSING" if info.get('exists') is False else "UNKNOWN"
        print(f"  {table}: {status}")
        if 'error' in info:
            print(f"      Error: {info['error']}")

    if results['missing']:
        print(f"\nMissing Tables: {', '.join(results['missing'])}")
        print("\nRun this script without --verify to get the SQL to create missing tables.")

    if results['errors']:
        print("\nErrors:")
        for error in results['errors']:
            print(f"  - {error}")

    print("\n" + "=" * 70)


# =============================================================================
# SQL Output
# =============================================================================

def get_setup_sql() -> str:
    """Get the setup SQL with timestamp."""
    return SCHEMA_SQL.format(generated_at=datetime.now().isoformat())


def get_sql(sql_type: str) -> str:
    if sql_type == 'drop':
        return DROP_SQL
    return get_setup_sql()


def main():
    """Main entry point for the setup script."""
    parser = argparse.ArgumentParser(
        description='Generate Supabase setup SQL for the sale audit pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print setup SQL to console
    python scripts/setup_supabase.py

    # Save setup SQL to file
    python scripts/setup_supabase.py --output setup.sql

    # Verify tables exist in Supabase
    python scripts/setup_supabase.py --verify

    # Print drop SQL (use with caution!)
    python scripts/setup_supabase.py --type drop
        """
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Save SQL to file instead of printing'
    )

    parser.add_argument(
        '--type', '-t',
        type=str,
        choices=['setup', 'drop'],
        default='setup',
        help='Type of SQL to generate (default: setup)'
    )

    parser.add_argument(
        '--verify', '-v',
        action='store_true',
        help='Verify that tables exist in Supabase'
    )

    args = parser.parse_args()

    if args.verify:
        results = verify_tables()
        print_verification_results(results)
        sys.exit(0 if results.get('success') else 1)

    sql = get_sql(args.type)
    if args.output:
        with open(args.output, 'w') as f:
            f.write(sql)
        print(f"SQL saved to: {args.output}")
    else:
        print(sql)


if __name__ == '__main__':
    main()
