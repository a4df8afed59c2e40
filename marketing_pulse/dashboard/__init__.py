"""
Streamlit dashboard for Marketing Pulse.

Pages fetch source payloads from the backend through the fetch orchestrator,
which caches them per page and falls back to placeholder data per source.
"""
