"""HTTP surface (FastAPI) over AeroTraceBackend."""
