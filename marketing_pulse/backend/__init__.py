"""FastAPI backend serving source payloads and AI insights to the dashboard."""
