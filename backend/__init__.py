"""
backend/ - HTTP layer for HealthAI Pro+
========================================

- main.py: FastAPI app (front-end page, /ask, /health)
- cli.py: Console entry points (server, one-off questions)
"""
