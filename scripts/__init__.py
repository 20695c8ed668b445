"""
Utility Scripts.

- setup_supabase.py: Print or verify the sales table schema

Run scripts with: python -m scripts.<script_name>
"""
