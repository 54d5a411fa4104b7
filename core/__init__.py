"""
core/ - Core business logic for HealthAI Pro+
==============================================

This package contains the answer pipeline:
- classifier.py: Greeting detection and query normalization
- cache.py: Time-bounded in-memory answer cache
- knowledge_base.py: Offline disease records, matching and rendering
- generator.py: Gemini fallback for questions the offline tiers can't answer
- service.py: Pipeline that runs the tiers in order
"""
