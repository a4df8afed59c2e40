"""
Marketing Pulse

Multi-source marketing dashboard: vendor connectors, a FastAPI backend that
reshapes their payloads, and a Streamlit dashboard that aggregates, caches and
segments the results by market.
"""

__version__ = "1.0.0"
