"""
Extract text from all reading PDFs and upsert it to Supabase for full-text search.

Usage:
    export SUPABASE_URL=https://<project>.supabase.co
    export SUPABASE_SERVICE_KEY=<service role key, not the anon key>
    python3 index_readings.py --readings-dir ./readings

    # extract only, nothing is written anywhere
    python3 index_readings.py --dry-run

    # local SQLite mirror / Whoosh index instead of Supabase
    python3 index_readings.py --backend sqlite
    python3 index_readings.py --backend whoosh
    python3 index_readings.py search "dependent arising"
"""

import sys

from reading_index.cli import main

if __name__ == "__main__":
    sys.exit(main())
