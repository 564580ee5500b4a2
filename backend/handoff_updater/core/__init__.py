"""
Core module - Base abstractions and interfaces

Provides foundational components used across the updater:
- Interfaces and protocols (core.interfaces)
- Base exception hierarchy (core.exceptions)
- Configuration management (core.config)
- Application lifecycle (core.lifecycle)
"""
