"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application settings and n8n management API credentials
- logging: Structured logging configuration
"""
